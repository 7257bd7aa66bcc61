"""
Domain errors raised by the category services.
The HTTP layer maps each class to a status code in main.create_app().
"""


class CategoryError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CategoryError):
    """A category looked up by id or slug does not exist"""
    status_code = 404


class ConflictError(CategoryError):
    """The slug is already held by a different category"""
    status_code = 409


class InvalidOperationError(CategoryError):
    """Self-parenting, a move that would create a cycle, or deleting a node with children"""
    status_code = 400
