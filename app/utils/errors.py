from fastapi import HTTPException


class InvalidRequestError(HTTPException):
    def __init__(self, detail="Invalid request"):
        super().__init__(status_code=400, detail=detail)


class NotAuthorizedError(HTTPException):
    def __init__(self, detail="Not authorized"):
        super().__init__(status_code=403, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail="Not found"):
        super().__init__(status_code=404, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail="Conflict"):
        super().__init__(status_code=409, detail=detail)
