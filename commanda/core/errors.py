from __future__ import annotations


class CommandaError(Exception):
    """Erro de domínio com status HTTP associado.

    Toda exceção desta família é convertida pelo handler global no envelope
    ``{"success": false, "error": <message>}``.
    """

    status_code = 500
    default_message = "Erro interno"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(CommandaError):
    status_code = 401
    default_message = "Não autorizado"


class MissingCredentials(Unauthenticated):
    default_message = "Header x-instance-token ou x-api-key é obrigatório"


class InvalidCredentials(Unauthenticated):
    default_message = "Instância não encontrada ou token inválido"


class Forbidden(CommandaError):
    status_code = 403
    default_message = "Acesso negado"


class NotFound(CommandaError):
    status_code = 404
    default_message = "Recurso não encontrado"


class InvalidTransition(CommandaError):
    status_code = 400
    default_message = "Transição de status inválida"

    def __init__(self, message: str | None = None, *, current_status: str | None = None) -> None:
        self.current_status = current_status
        super().__init__(message)


class ValidationFailed(CommandaError):
    status_code = 400
    default_message = "Requisição inválida"


class UpstreamFailure(CommandaError):
    status_code = 500
    default_message = "Falha em serviço externo"
