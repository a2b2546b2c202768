import pytest

from fintrack.auth.identity import MAX_FAILED_ATTEMPTS, AuthError, LocalIdentityProvider, auth_error_message
from fintrack.auth.session import Session


def test_error_messages_depend_on_mode() -> None:
    assert auth_error_message("invalid-login-credentials", "login") == "Invalid email or password."
    assert auth_error_message("invalid-login-credentials", "signup") == "Invalid credentials."
    assert auth_error_message("weak-password") == "Password should be at least 6 characters."
    assert auth_error_message("something-new") == "Authentication error. Please try again."


def test_sign_up_then_sign_in_notifies_listeners() -> None:
    session = Session(LocalIdentityProvider())
    seen: list[str | None] = []
    session.subscribe(seen.append)

    user_id = session.sign_up(" Ana@Example.com ", "secret1")
    session.sign_out()
    assert session.sign_in("ana@example.com", "secret1") == user_id
    assert seen == [None, user_id, None, user_id]
    assert session.is_authenticated


@pytest.mark.parametrize(
    ("email", "password", "code"),
    [
        ("", "secret1", "missing-email"),
        ("not-an-email", "secret1", "invalid-email"),
        ("ana@example.com", "", "missing-password"),
        ("ana@example.com", "123", "weak-password"),
    ],
)
def test_sign_up_validation(email: str, password: str, code: str) -> None:
    with pytest.raises(AuthError) as error:
        LocalIdentityProvider().sign_up(email, password)
    assert error.value.code == code


def test_duplicate_and_unknown_accounts() -> None:
    identity = LocalIdentityProvider()
    identity.sign_up("ana@example.com", "secret1")
    with pytest.raises(AuthError, match="email-already-in-use"):
        identity.sign_up("ana@example.com", "secret2")
    with pytest.raises(AuthError, match="user-not-found"):
        identity.sign_in("bo@example.com", "secret1")


def test_repeated_wrong_passwords_lock_the_account() -> None:
    now = [1000.0]
    identity = LocalIdentityProvider(clock=lambda: now[0])
    identity.sign_up("ana@example.com", "secret1")
    for _ in range(MAX_FAILED_ATTEMPTS):
        with pytest.raises(AuthError, match="wrong-password"):
            identity.sign_in("ana@example.com", "nope-nope")
    with pytest.raises(AuthError, match="too-many-requests"):
        identity.sign_in("ana@example.com", "secret1")

    now[0] += 301
    assert identity.sign_in("ana@example.com", "secret1")


def test_change_password() -> None:
    session = Session(LocalIdentityProvider())
    with pytest.raises(AuthError, match="not-signed-in"):
        session.change_password("secret1", "secret2", "secret2")

    session.sign_up("ana@example.com", "secret1")
    with pytest.raises(AuthError, match="password-mismatch"):
        session.change_password("secret1", "secret2", "secret3")
    with pytest.raises(AuthError, match="wrong-password"):
        session.change_password("wrong1", "secret2", "secret2")

    session.change_password("secret1", "secret2", "secret2")
    session.sign_out()
    with pytest.raises(AuthError, match="wrong-password"):
        session.sign_in("ana@example.com", "secret1")
    assert session.sign_in("ana@example.com", "secret2")
