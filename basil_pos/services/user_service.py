# ==============================================================================
# USER SERVICE
# ==============================================================================
# Login is decorative: it always succeeds. The current user is only used to
# stamp who sold, restocked or received a payment.
# ==============================================================================

from typing import Any, Dict, List, Optional

from basil_pos.models import DEFAULT_USER, User, UserRole
from basil_pos.repositories.user_repository import CurrentUserRepository, UserRepository
from basil_pos.utils import new_id, now_iso


class UserService:
    """
    Users and the signed-in user.

    Responsibilities:
    - Bootstrap the default user when nobody is signed in
    - Accept any login
    - Create and list users
    """

    def __init__(self, user_repo: UserRepository, current_user_repo: CurrentUserRepository):
        self.user_repo = user_repo
        self.current_user_repo = current_user_repo

    def get_current_user(self) -> Dict[str, Any]:
        """
        Returns:
            The stored current user, or the default one (stored on first read)
        """
        current = self.current_user_repo.get()
        if current.get('id'):
            return current

        default = DEFAULT_USER.to_dict()
        self.current_user_repo.save(default)
        return default

    def login(self, username: Optional[str] = None) -> Dict[str, Any]:
        """
        Signs a user in. Never fails: unknown names fall back to the
        default user.

        Args:
            username: Username or email of a known user

        Returns:
            Dict with ok and user
        """
        record = None
        if username:
            record = (self.user_repo.get_by_username(username)
                      or self.user_repo.get_by_email(username))

        user = User.from_dict(record).to_dict() if record else DEFAULT_USER.to_dict()
        user['last_login'] = now_iso()
        if record:
            self.user_repo.update_where('id', user['id'], {'last_login': user['last_login']})

        self.current_user_repo.save(user)
        return {'ok': True, 'user': user}

    def logout(self) -> Dict[str, Any]:
        self.current_user_repo.clear()
        return {'ok': True}

    def list_users(self) -> List[Dict[str, Any]]:
        return sorted(self.user_repo.get_all(), key=lambda u: (u.get('full_name') or '').lower())

    def create_user(
        self,
        full_name: str,
        email: str,
        role: str = 'staff',
        username: str = ''
    ) -> Dict[str, Any]:
        """
        Args:
            full_name: Required
            email: Required and unique
            role: admin or staff
            username: Optional login handle, defaults to the email

        Returns:
            Dict with ok and user
        """
        full_name = (full_name or '').strip()
        email = (email or '').strip().lower()
        if not full_name or not email:
            return {'ok': False, 'error': 'Full name and email are required'}

        if '@' not in email:
            return {'ok': False, 'error': 'Email address is not valid'}

        if self.user_repo.get_by_email(email):
            return {'ok': False, 'error': 'A user with this email already exists'}

        try:
            role_enum = UserRole(role or 'staff')
        except ValueError:
            return {'ok': False, 'error': f"Unknown role '{role}'"}

        user = User(
            id=new_id('user'),
            full_name=full_name,
            username=(username or email).strip().lower(),
            email=email,
            role=role_enum,
            created_at=now_iso(),
        )
        self.user_repo.create_user(user.to_dict())
        return {'ok': True, 'user': user.to_dict()}
