# ==============================================================================
# USER REPOSITORIES - access to the "users" and "current_user" keys
# ==============================================================================

from typing import Any, Dict, Optional

from basil_pos.repositories.base import JSONStorage, ListRepository, ObjectRepository


class UserRepository(ListRepository):
    """
    Known users stored as an array under "users".
    """

    key = 'users'

    def __init__(self, storage: JSONStorage):
        super().__init__(storage)

    def get_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        wanted = (username or '').strip().lower()
        for user in self.get_all():
            if (user.get('username') or '').lower() == wanted:
                return user
        return None

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        wanted = (email or '').strip().lower()
        for user in self.get_all():
            if (user.get('email') or '').lower() == wanted:
                return user
        return None

    def create_user(self, user: Dict[str, Any]) -> str:
        self.append(user)
        return user['id']


class CurrentUserRepository(ObjectRepository):
    """
    The signed-in user, a single object under "current_user".
    Empty object means nobody is signed in.
    """

    key = 'current_user'

    def __init__(self, storage: JSONStorage):
        super().__init__(storage)
