class ScolarFlowError(Exception):
    """Erreur métier remontée au gestionnaire global (middlewares/error_handler.py)"""
    code = "SCOLARFLOW_ERROR"
    status_code = 400

    def __init__(self, message: str, code: str = None, status_code: int = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code


class NotFoundError(ScolarFlowError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(ScolarFlowError):
    code = "CONFLICT"
    status_code = 409


class GradeSourceError(ScolarFlowError):
    """Échec d'accès aux données (base ou API distante)"""
    code = "GRADE_SOURCE_ERROR"
    status_code = 502
