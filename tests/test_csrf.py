from printadmin import csrf
from printadmin.session_state import AdminSession

PARAMS = {"httponly": True, "secure": False, "samesite": "lax", "path": "/"}


def _session(manager, session_id=None):
    session = AdminSession(manager, session_id, PARAMS)
    session.load()
    return session


def test_token_is_stable_within_a_session(manager):
    session = _session(manager)
    token = csrf.get_token(session)
    assert csrf.get_token(session) == token
    # a later request on the same session sees the same token
    assert csrf.get_token(_session(manager, session.session_id)) == token


def test_token_has_enough_entropy(manager):
    token = csrf.get_token(_session(manager))
    # 32 random bytes, base64url without padding
    assert len(token) >= 43


def test_tokens_differ_across_sessions(manager):
    tokens = {csrf.get_token(_session(manager)) for _ in range(200)}
    assert len(tokens) == 200


def test_regenerate_replaces_the_token(manager):
    session = _session(manager)
    old = csrf.get_token(session)
    new = csrf.regenerate_token(session)
    assert new != old
    assert csrf.get_token(_session(manager, session.session_id)) == new


def test_verify(manager):
    session = _session(manager)
    token = csrf.get_token(session)
    assert csrf.verify(session, token)
    assert not csrf.verify(session, token[:-1] + ("A" if token[-1] != "A" else "B"))
    assert not csrf.verify(session, "")
    assert not csrf.verify(session, None)
    assert not csrf.verify(session, "токен")


def test_verify_without_a_stored_token_fails(manager):
    assert not csrf.verify(_session(manager), "anything")


def test_meta_tag_and_form_field(manager):
    session = _session(manager)
    token = csrf.get_token(session)
    assert csrf.get_token_meta(session) == f'<meta name="csrf-token" content="{token}">'
    assert csrf.get_token_field(session) == f'<input type="hidden" name="csrf_token" value="{token}">'
    assert 'name="a&quot;b"' in csrf.get_token_field(session, 'a"b')
