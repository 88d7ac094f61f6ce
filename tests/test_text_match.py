import pytest

from prj_core.text_match import (
    contains, replace_text, remove_postfix, replace_filename,
    is_valid_filename, is_valid_model_name,
)


def test_contains_case_modes():
    assert contains("Controller_V1", "_v1", case_sensitive=False)
    assert not contains("Controller_V1", "_v1")
    assert contains("anything", "")


def test_replace_text_case_insensitive():
    assert replace_text("A_v1 a_V1", "a_v1", "b", case_sensitive=False) == "b b"


@pytest.mark.parametrize("stem, postfix, expected", [
    ("controller_v1", "_v1", "controller"),
    ("a_v1_v1", "_v1", "a"),
    ("v1_model", "v1_", "model"),
    ("plain", "_v1", "plain"),
])
def test_remove_postfix(stem, postfix, expected):
    assert remove_postfix(stem, postfix) == expected


def test_replace_filename_full_name():
    text = "open_system('lib_v1.slx');"
    assert replace_filename(text, "lib_v1.slx", "lib.slx") == "open_system('lib.slx');"


def test_replace_filename_base_name_in_block_path():
    assert replace_filename("lib_v1/Gain", "lib_v1.slx", "lib.slx") == "lib/Gain"


def test_replace_filename_keeps_longer_identifiers():
    text = "lib_v10/Gain my_lib_v1 lib_v1"
    assert replace_filename(text, "lib_v1.slx", "lib.slx") == "lib_v10/Gain my_lib_v1 lib"


def test_replace_filename_new_name_with_backslash():
    assert replace_filename("x lib_v1 y", "lib_v1.m", "a\\1.m") == "x a\\1 y"


def test_is_valid_filename():
    assert is_valid_filename("model.slx") == (True, None)
    assert not is_valid_filename("")[0]
    assert not is_valid_filename("a:b.slx")[0]
    assert not is_valid_filename("CON.slx")[0]
    valid, reason = is_valid_filename(".slx")
    assert not valid
    assert reason == "Filename has no base name"


def test_is_valid_model_name():
    assert is_valid_model_name("controller_2")[0]
    assert not is_valid_model_name("2controller")[0]
    assert not is_valid_model_name("my-model")[0]
    assert not is_valid_model_name("a" * 64)[0]


def test_replace_filename_keeps_names_with_other_extensions():
    text = "open('ctrl_v1.sldd'); load('ctrl_v1.mat'); sim('ctrl_v1')"
    assert replace_filename(text, "ctrl_v1.slx", "ctrl.slx") == \
        "open('ctrl_v1.sldd'); load('ctrl_v1.mat'); sim('ctrl')"


def test_replace_filename_case_insensitive_base_name():
    assert replace_filename("LIB_V1/Gain", "lib_v1.slx", "lib.slx", case_sensitive=False) == "lib/Gain"
