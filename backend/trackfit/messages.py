"""User-facing (pt-BR) messages keyed by error code."""

from __future__ import annotations

from trackfit.errors import AppError, ErrorCode

GENERIC_ERROR = "Algo deu errado. Tente novamente."

MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_ERROR: "Erro de autenticação",
    ErrorCode.INVALID_CREDENTIALS: "Email ou senha incorretos",
    ErrorCode.EMAIL_EXISTS: "Este email já está cadastrado",
    ErrorCode.USERNAME_EXISTS: "Este nome de usuário já está em uso",
    ErrorCode.PROVIDER_SIGN_IN_ERROR: "Erro ao fazer login com o provedor",
    ErrorCode.HASH_ERROR: "Erro ao processar senha",
    ErrorCode.VERIFY_ERROR: "Erro ao verificar senha",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Muitas tentativas de login. Tente novamente mais tarde.",
    ErrorCode.VALIDATION_ERROR: "Dados inválidos",
    ErrorCode.REQUIRED: "Campo obrigatório",
    ErrorCode.INVALID_EMAIL: "Email inválido",
    ErrorCode.USERNAME_TOO_SHORT: "Nome de usuário muito curto",
    ErrorCode.USERNAME_TOO_LONG: "Nome de usuário muito longo",
    ErrorCode.INVALID_USERNAME: "Nome de usuário deve conter apenas letras, números, _ e -",
    ErrorCode.USERNAME_CONSECUTIVE_SPECIAL: "Nome de usuário não pode ter caracteres especiais consecutivos",
    ErrorCode.USERNAME_LEADING_SPECIAL: "Nome de usuário não pode começar com caractere especial",
    ErrorCode.USERNAME_TRAILING_SPECIAL: "Nome de usuário não pode terminar com caractere especial",
    ErrorCode.USERNAME_RESERVED: "Este nome de usuário é reservado",
    ErrorCode.PASSWORD_TOO_SHORT: "Senha muito curta",
    ErrorCode.PASSWORD_TOO_LONG: "Senha muito longa",
    ErrorCode.PASSWORD_COMMON: "Esta senha é muito comum",
    ErrorCode.PASSWORD_MISSING_UPPERCASE: "Senha deve conter pelo menos uma letra maiúscula",
    ErrorCode.PASSWORD_MISSING_LOWERCASE: "Senha deve conter pelo menos uma letra minúscula",
    ErrorCode.PASSWORD_MISSING_NUMBER: "Senha deve conter pelo menos um número",
    ErrorCode.PASSWORD_MISSING_SPECIAL: "Senha deve conter pelo menos um caractere especial",
    ErrorCode.PASSWORD_PERSONAL_INFO: "Senha não pode conter informações pessoais",
    ErrorCode.PASSWORD_TOO_WEAK: "Senha muito fraca",
    ErrorCode.PASSWORD_MISMATCH: "As senhas não coincidem",
    ErrorCode.NAME_TOO_SHORT: "Nome deve ter pelo menos 2 caracteres",
    ErrorCode.NAME_TOO_LONG: "Nome deve ter no máximo 50 caracteres",
    ErrorCode.STORAGE_ERROR: "Erro de armazenamento",
    ErrorCode.STORAGE_SAVE_ERROR: "Erro ao salvar dados",
    ErrorCode.STORAGE_LOAD_ERROR: "Erro ao carregar dados",
    ErrorCode.STORAGE_DELETE_ERROR: "Erro ao remover dados",
    ErrorCode.STORAGE_CORRUPTED: "Dados armazenados corrompidos",
}


def message_for(code: ErrorCode) -> str:
    return MESSAGES.get(code, GENERIC_ERROR)


def user_message(exc: BaseException) -> str:
    """Convert any exception into a short message safe to show to the user."""
    if isinstance(exc, AppError):
        return exc.message or message_for(exc.code)
    return GENERIC_ERROR
