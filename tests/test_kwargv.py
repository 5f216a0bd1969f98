# -*- mode: python; coding: utf-8 -*-
# Copyright 2012-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

import pytest

from dampls import Holder
from dampls.kwargv import Custom, KwargvError, ParseKeywords


def _check_cols(value):
    if len(value) > 3:
        raise KwargvError("too many columns")
    return value or [0, 1]


class Settings(ParseKeywords):
    count = 3
    scale = 1.5
    label = str
    flag = False
    values = [float]
    path = Custom(str, required=True)
    cols = Custom([int], minvals=2, fixupfunc=_check_cols)

    def describe(self):
        return "%d@%g" % (self.count, self.scale)


class MoreSettings(Settings):
    count = 7
    extra = "x"


def test_defaults():
    s = Settings()
    assert s.count == 3
    assert s.scale == 1.5
    assert s.label is None
    assert s.flag is False
    assert s.values == []
    assert s.path is None
    assert s.cols == [0, 1]
    assert s.describe() == "3@1.5"
    assert "describe" not in s.to_dict()
    assert "_kwinfos" not in s.to_dict()


def test_parse():
    s = Settings().parse(
        [
            "path=/tmp/x",
            "count=5",
            "flag=yes",
            "values=1,2.5",
            "label=a=b",
            "cols=0,1,2",
        ]
    )
    assert s.path == "/tmp/x"
    assert s.count == 5
    assert s.flag is True
    assert s.values == [1.0, 2.5]
    assert s.label == "a=b"
    assert s.cols == [0, 1, 2]


def test_parse_errors():
    with pytest.raises(KwargvError):
        Settings().parse([])  # path is required
    with pytest.raises(KwargvError):
        Settings().parse(["path=a", "bogus=1"])
    with pytest.raises(KwargvError):
        Settings().parse(["path=a", "count"])
    with pytest.raises(KwargvError):
        Settings().parse(["path=a", "count="])
    with pytest.raises(KwargvError):
        Settings().parse(["path=a", "count=many"])
    with pytest.raises(KwargvError):
        Settings().parse(["path=a", "flag=perhaps"])
    with pytest.raises(KwargvError):
        Settings().parse(["path=a", "values=1,x"])
    with pytest.raises(KwargvError):
        Settings().parse(["path=a", "cols=1"])
    with pytest.raises(KwargvError):
        Settings().parse(["path=a", "cols=1,2,3,4"])


def test_bad_declarations():
    class Fixed(ParseKeywords):
        pair = [2.0, int]

    with pytest.raises(ValueError):
        Fixed()

    class Odd(ParseKeywords):
        thing = None

    with pytest.raises(ValueError):
        Odd()


def test_parse_or_die():
    with pytest.raises(SystemExit) as e:
        Settings().parse_or_die(["bogus=1"])
    assert "bogus" in str(e.value.code)


def test_inheritance():
    s = MoreSettings().parse(["path=p", "extra=y"])
    assert s.count == 7
    assert s.extra == "y"
    assert s.scale == 1.5


def test_copy_and_pretty():
    s = Settings()
    c = s.copy()
    c.count = 10
    assert s.count == 3
    assert c.parse(["path=q"]).path == "q"
    assert ["count", "=", "10"] in [l.split() for l in c.to_pretty().splitlines()]


def test_holder():
    h = Holder(a=1, b="two")
    assert h.a == 1
    assert "a" in h
    assert h.get("c", 3) == 3
    assert dict(h) == {"a": 1, "b": "two"}
    assert h.set_one("c", 4).c == 4
    assert h.to_pretty("repr").splitlines()[1] == "b = 'two'"
    with pytest.raises(ValueError):
        h.to_pretty("xml")
