from servicedesk.services.user.user_directory import UserDirectory

__all__ = ["UserDirectory"]
