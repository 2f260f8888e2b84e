from unittest.mock import Mock

from trivia_rooms.registry import CODE_ALPHABET, CODE_LENGTH, SessionRegistry, generate_code


def test_generated_codes_are_short_and_typeable():
    for _ in range(50):
        code = generate_code()
        assert len(code) == CODE_LENGTH
        assert all(ch in CODE_ALPHABET for ch in code)


def test_create_regenerates_on_collision():
    codes = iter(["AAAAAA", "AAAAAA", "AAAAAA", "BBBBBB"])
    registry = SessionRegistry(code_factory=lambda: next(codes))
    first = registry.create("h1", "One")
    second = registry.create("h2", "Two")
    assert first.code == "AAAAAA"
    assert second.code == "BBBBBB"
    assert len(registry) == 2


def test_codes_unique_among_live_sessions():
    registry = SessionRegistry()
    codes = {registry.create(f"h{i}", "Host").code for i in range(200)}
    assert len(codes) == 200


def test_create_seeds_host_as_only_participant():
    registry = SessionRegistry(code_factory=lambda: "ABC123")
    session = registry.create("host", "Hosty", "owl")
    assert session.host_id == "host"
    assert list(session.players) == ["host"]
    assert session.players["host"].avatar == "owl"
    assert session.players["host"].score == 0
    assert session.current_index == -1
    assert session.timer is None


def test_find_is_case_insensitive():
    registry = SessionRegistry(code_factory=lambda: "ABC123")
    session = registry.create("host", "Hosty")
    assert registry.find(" abc123 ") is session
    assert registry.find("NOPE00") is None
    assert registry.find(None) is None
    assert "abc123" in registry


def test_remove_cancels_timer_and_is_idempotent():
    registry = SessionRegistry(code_factory=lambda: "ABC123")
    session = registry.create("host", "Hosty")
    handle = Mock()
    session.set_timer(handle)

    assert registry.remove("ABC123") is session
    handle.cancel.assert_called_once()
    assert session.timer is None
    assert registry.remove("ABC123") is None
    assert len(registry) == 0


def test_set_timer_cancels_previous_handle():
    registry = SessionRegistry(code_factory=lambda: "ABC123")
    session = registry.create("host", "Hosty")
    old, new = Mock(), Mock()
    session.set_timer(old)
    session.set_timer(new)
    old.cancel.assert_called_once()
    new.cancel.assert_not_called()
    assert session.timer is new


def test_sessions_for_connection():
    codes = iter(["AAAAAA", "BBBBBB"])
    registry = SessionRegistry(code_factory=lambda: next(codes))
    a = registry.create("h1", "One")
    b = registry.create("h2", "Two")
    b.add_player("h1", "Again", None)
    assert registry.sessions_for("h1") == [a, b]
    assert registry.sessions_for("nobody") == []
