from shutdown_on_lan.core.state_machine import ListenerEvent, ListenerState, ListenerStateMachine


def test_state_machine_happy_path():
    sm = ListenerStateMachine()
    assert sm.state == ListenerState.CREATED

    sm.transition(ListenerEvent.BIND)
    assert sm.state == ListenerState.LISTENING

    sm.transition(ListenerEvent.CLOSE)
    assert sm.state == ListenerState.TERMINATED


def test_state_machine_bind_failure_is_terminal():
    sm = ListenerStateMachine()
    sm.transition(ListenerEvent.BIND_FAILED)
    assert sm.state == ListenerState.TERMINATED

    sm.transition(ListenerEvent.BIND)
    assert sm.state == ListenerState.TERMINATED


def test_state_machine_ignores_invalid_transition(caplog):
    sm = ListenerStateMachine()
    sm.transition(ListenerEvent.BIND)

    sm.transition(ListenerEvent.BIND_FAILED)

    assert sm.state == ListenerState.LISTENING
    assert "Invalid state transition" in caplog.text


def test_state_machine_reports_allowed_events():
    sm = ListenerStateMachine()
    assert sm.can_transition(ListenerEvent.BIND)

    sm.transition(ListenerEvent.CLOSE)

    assert not sm.can_transition(ListenerEvent.BIND)
    assert not sm.can_transition(ListenerEvent.CLOSE)
