class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = str(code)
        self.message = message
        super().__init__(message)
