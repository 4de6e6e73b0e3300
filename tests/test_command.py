import pytest

from ptpcollect.command import Cmd, CmdGroup, CommandError


def test_new_cmd_builds_full_command():
    cmd = Cmd("TestKey", "Hello This is a test")
    assert cmd.command == "echo '<TestKey>';Hello This is a test;echo '</TestKey>';"


def test_command_with_trailing_semicolon_not_doubled():
    cmd = Cmd("date", "date +%s.%N;")
    assert cmd.command == "echo '<date>';date +%s.%N;echo '</date>';"


def test_date_command_string():
    cmd = Cmd("date", "date +%s.%N")
    assert cmd.command == "echo '<date>';date +%s.%N;echo '</date>';"


def test_extract_valid_result():
    expected = "I am the correct answer"
    key = "TestKey"
    cmd = Cmd(key, "Hello This is a test")
    result = cmd.extract_result(f"<{key}>\n{expected}\n</{key}>\n")
    assert result[key] == expected


def test_extract_invalid_result_raises():
    cmd = Cmd("TestKey", "Hello This is a test")
    with pytest.raises(CommandError, match="TestKey"):
        cmd.extract_result("<SomethingElse>\nI am not the correct answer\n</SomethingElse>\n")


def test_output_processor_is_used():
    part1 = "I am part"
    part2 = "of the correct answer"
    key = "TestKey"
    cmd = Cmd(key, "Hello This is a test")
    cmd.output_processor = lambda value: value + part2
    result = cmd.extract_result(f"<{key}>\n{part1}\n</{key}>\n")
    assert result[key] == part1 + part2


def test_output_processor_failure_raises():
    def failing(value):
        raise ValueError("bad")

    cmd = Cmd("TestKey", "x", output_processor=failing)
    with pytest.raises(CommandError, match="failed to cleanup"):
        cmd.extract_result("<TestKey>\nvalue\n</TestKey>\n")


def test_multiline_result():
    cmd = Cmd("k", "x")
    assert cmd.extract_result("<k>\nline1\nline2\n</k>\n") == {"k": "line1\nline2"}


def test_empty_command_raises():
    with pytest.raises(CommandError):
        Cmd("k", "")


def test_group_command_concatenates():
    cmd = Cmd("TestKey", "Hello This is a test")
    group = CmdGroup()
    group.add_command(cmd)
    assert group.command == cmd.command

    cmd2 = Cmd("TestKey2", "This is another test goodbye.")
    group.add_command(cmd2)
    assert group.command == cmd.command + cmd2.command


def test_group_extracts_all_keys():
    key1, key2 = "TestKey", "TestKey2"
    answer1, answer2 = "Result of key1", "Result of key2"
    group = CmdGroup([Cmd(key1, "Hello This is a test"), Cmd(key2, "This is another test goodbye.")])
    result = group.extract_result(
        f"<{key1}>\n{answer1}\n</{key1}>\n<{key2}>\n{answer2}\n</{key2}>\n"
    )
    assert result == {key1: answer1, key2: answer2}


def test_group_missing_key_raises():
    group = CmdGroup([Cmd("a", "x"), Cmd("b", "y")])
    with pytest.raises(CommandError, match="key: b"):
        group.extract_result("<a>\n1\n</a>\n")