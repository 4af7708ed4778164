"""Local authentication for the TrackFit client."""
