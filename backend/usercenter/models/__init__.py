from usercenter.models.user import User, UserPage, UserView

__all__ = [
    "User",
    "UserPage",
    "UserView",
]
