import os
import time

import pytest

from quadctrl.enums import UserCommand
from quadctrl.keyboard import KeyBoard


@pytest.mark.parametrize(
    "key, command",
    [
        ("1", UserCommand.L2_B),
        ("2", UserCommand.L2_A),
        ("3", UserCommand.L2_X),
        ("4", UserCommand.START),
        ("5", UserCommand.L2_Y),
        ("0", UserCommand.L1_X),
        ("9", UserCommand.L1_A),
        ("8", UserCommand.L1_Y),
        ("q", UserCommand.NONE),
        ("w", UserCommand.NONE),
    ],
)
def test_check_cmd(key, command):
    assert KeyBoard().check_cmd(key) == command


def test_change_value_step():
    kb = KeyBoard()
    kb.change_value("w")
    assert kb.user_value.ly == pytest.approx(kb.sensitivity_left)
    kb.change_value("J")
    assert kb.user_value.rx == pytest.approx(-kb.sensitivity_right)


def test_values_clamped_to_unit_range():
    kb = KeyBoard()
    for _ in range(30):
        kb.change_value("d")
        kb.change_value("k")
    assert kb.user_value.lx == 1.0
    assert kb.user_value.ry == -1.0


def test_upper_and_lower_case_match():
    lower, upper = KeyBoard(), KeyBoard()
    for key in "wasdijkl":
        lower.change_value(key)
        upper.change_value(key.upper())
    assert lower.user_value == upper.user_value


def test_space_centres_sticks():
    kb = KeyBoard()
    kb.handle_key("w")
    kb.handle_key("l")
    kb.handle_key(" ")
    assert kb.user_cmd == UserCommand.NONE
    assert (kb.user_value.ly, kb.user_value.rx) == (0.0, 0.0)


def test_command_key_leaves_values():
    kb = KeyBoard()
    kb.handle_key("w")
    before = kb.user_value.ly
    kb.handle_key("4")
    assert kb.user_cmd == UserCommand.START
    assert kb.user_value.ly == before


def test_reader_thread_processes_keys():
    read_fd, write_fd = os.pipe()
    try:
        with KeyBoard(fd=read_fd) as kb:
            os.write(write_fd, b"4")
            deadline = time.monotonic() + 2.0
            while kb.user_cmd != UserCommand.START and time.monotonic() < deadline:
                time.sleep(0.01)
            assert kb.user_cmd == UserCommand.START
    finally:
        os.close(read_fd)
        os.close(write_fd)


def test_start_twice_raises():
    read_fd, write_fd = os.pipe()
    kb = KeyBoard(fd=read_fd)
    try:
        kb.start()
        with pytest.raises(RuntimeError):
            kb.start()
    finally:
        kb.stop()
        os.close(read_fd)
        os.close(write_fd)