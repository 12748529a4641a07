import pytest

from linclass.reporting import info, set_print_string_function


@pytest.fixture(autouse=True)
def _restore_printer():
    yield
    set_print_string_function(None)


def test_messages_go_to_custom_function():
    received = []
    set_print_string_function(received.append)
    info("first")
    info("second\n")
    assert received == ["first", "second\n"]


def test_default_prints_to_stdout(capsys):
    set_print_string_function(None)
    info("optimization finished\n")
    assert capsys.readouterr().out == "optimization finished\n"


def test_resetting_stops_custom_delivery(capsys):
    received = []
    set_print_string_function(received.append)
    info("a")
    set_print_string_function(None)
    info("b")
    assert received == ["a"]
    assert capsys.readouterr().out == "b"


def test_quiet_function_suppresses_output(capsys):
    set_print_string_function(lambda message: None)
    info("hidden")
    assert capsys.readouterr().out == ""