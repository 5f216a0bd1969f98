# -*- mode: python; coding: utf-8 -*-
# Copyright 2014-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

import pytest

from dampls import DamplsError
from dampls.simpleenum import enumeration, members


@enumeration
class Color(object):
    red = "red"
    blue = "blue"


def test_enumeration():
    assert Color.red == "red"
    assert members(Color) == (("blue", "blue"), ("red", "red"))

    with pytest.raises(AttributeError):
        Color.green
    with pytest.raises(AttributeError):
        Color.red = "pink"
    with pytest.raises(AttributeError):
        del Color.blue


def test_error_formatting():
    e = DamplsError("bad %s: %d", "thing", 3)
    assert str(e) == "bad thing: 3"
    assert repr(e) == "DamplsError('bad thing: 3')"
    assert str(DamplsError("100%")) == "100%"
