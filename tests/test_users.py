import pytest

from bioplastic_lab.errors import AuthenticationFailed, DuplicateEmail, ValidationFailed
from bioplastic_lab.models.enums import UserRole
from bioplastic_lab.services.store import StorageKeys


def test_add_user_rejects_duplicate_email_case_insensitively(directory) -> None:
    directory.add_user(name="Ana", email="Ana@Lab.test", password="pw")
    with pytest.raises(DuplicateEmail, match="ana@lab.test"):
        directory.add_user(name="Other", email="ana@lab.test", password="pw")
    assert len(directory.list_users()) == 1


def test_add_user_requires_fields(directory) -> None:
    with pytest.raises(ValidationFailed):
        directory.add_user(name="", email="x@lab.test", password="pw")
    with pytest.raises(ValidationFailed):
        directory.add_user(name="X", email="x@lab.test", password="")


def test_user_ids_are_unique(directory) -> None:
    ids = {
        directory.add_user(name=f"u{i}", email=f"u{i}@lab.test", password="pw").id
        for i in range(5)
    }
    assert len(ids) == 5


def test_login_sets_and_logout_clears_session(directory, store) -> None:
    user = directory.add_user(name="Ana", email="ana@lab.test", password="pw")
    session_user = directory.login("ANA@lab.test", "pw")
    assert session_user.id == user.id
    assert directory.context().user == session_user
    assert set(store.read(StorageKeys.SESSION)) == {"id", "name", "email", "role"}

    directory.logout()
    assert directory.current_user() is None
    assert directory.context().user_id is None


@pytest.mark.parametrize(
    "email, password, message",
    [
        ("nobody@lab.test", "pw", "用户不存在"),
        ("ana@lab.test", "bad", "密码错误"),
    ],
)
def test_login_failures(directory, email, password, message) -> None:
    directory.add_user(name="Ana", email="ana@lab.test", password="pw")
    with pytest.raises(AuthenticationFailed, match=message):
        directory.login(email, password)
    assert directory.current_user() is None


def test_inactive_user_cannot_log_in(directory) -> None:
    user = directory.add_user(name="Ana", email="ana@lab.test", password="pw")
    directory.update_user(user.id, {"active": False})
    with pytest.raises(AuthenticationFailed, match="停用"):
        directory.login("ana@lab.test", "pw")


def test_update_user_toggles_role_and_keeps_id(directory) -> None:
    user = directory.add_user(name="Ana", email="ana@lab.test", password="pw")
    updated = directory.update_user(user.id, {"role": UserRole.INSTRUCTOR, "id": "hijack"})
    assert updated.id == user.id
    assert updated.role == UserRole.INSTRUCTOR
    assert directory.update_user("missing", {"active": False}) is None


def test_update_user_rejects_taken_email(directory) -> None:
    directory.add_user(name="Ana", email="ana@lab.test", password="pw")
    bob = directory.add_user(name="Bob", email="bob@lab.test", password="pw")
    with pytest.raises(DuplicateEmail):
        directory.update_user(bob.id, {"email": "ANA@lab.test"})


def test_delete_user(directory) -> None:
    user = directory.add_user(name="Ana", email="ana@lab.test", password="pw")
    assert directory.delete_user(user.id)
    assert not directory.delete_user(user.id)
    assert directory.get_user(user.id) is None


def test_ensure_default_admin_is_idempotent(directory) -> None:
    assert directory.ensure_default_admin("admin@lab.test", "admin123")
    assert not directory.ensure_default_admin("ADMIN@lab.test", "admin123")
    admins = [u for u in directory.list_users() if u.role == UserRole.ADMIN]
    assert len(admins) == 1
