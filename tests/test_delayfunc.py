import logging

from zinx.delayfunc import DelayFunc


def say_hello(*message):
    say_hello.seen.append(f"{message[0]} {message[1]}")


say_hello.seen = []


def test_call_passes_arguments():
    say_hello.seen.clear()
    df = DelayFunc(say_hello, ["hello", "zinx!"])
    df.call()
    assert say_hello.seen == ["hello zinx!"]


def test_string_form():
    df = DelayFunc(say_hello, ["hello", "zinx!"])
    assert str(df) == "{DelayFun:say_hello, args:[hello zinx!]}"


def test_string_form_without_arguments():
    def noop():
        return None

    assert str(DelayFunc(noop)) == "{DelayFun:noop, args:[]}"


def test_call_logs_and_suppresses_errors(caplog):
    def boom(value):
        raise RuntimeError(f"bad {value}")

    df = DelayFunc(boom, [7])
    with caplog.at_level(logging.ERROR, logger="zinx.delayfunc"):
        df.call()
    assert "Call err: bad 7" in caplog.text


def test_call_with_too_few_arguments_is_logged(caplog):
    df = DelayFunc(say_hello, ["only"])
    with caplog.at_level(logging.ERROR, logger="zinx.delayfunc"):
        df.call()
    assert "{DelayFun:say_hello, args:[only]} Call err" in caplog.text