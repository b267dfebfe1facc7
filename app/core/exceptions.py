"""
Marcenaria API - Domain Errors
Erros de negócio convertidos em respostas {"message": ...} pelo app
"""
from fastapi import status


class AppError(Exception):
    """Erro esperado de negócio com status HTTP associado"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError, ValueError):
    """Entrada inválida. Também é ValueError para funcionar dentro de validators do pydantic."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
