import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))
import threading

import numpy as np
import pytest

from ctrlprop.errors import WorkspaceError
from ctrlprop.propagation.workspace import WORKSPACE, Workspace, array


def test_buffers_are_reused():
    ws = Workspace()
    a = ws.array(np.complex128, (3, 2), "a")
    b = ws.array(np.complex128, (3, 2), "a")
    assert a is b
    assert ws.array(np.complex128, 6, "a") is not a
    assert ws.array(np.complex64, (3, 2), "a") is not a
    assert ws.array(np.complex128, (3, 2), "b") is not a
    assert ws.array(float, 4, "c").shape == (4,)


def test_acquire_is_not_reentrant():
    ws = Workspace()
    with ws.acquire("x"):
        assert ws.in_use("x")
        with pytest.raises(WorkspaceError):
            with ws.acquire("x"):
                pass
        # other labels are independent
        with ws.acquire("y"):
            assert ws.in_use("y")
    assert not ws.in_use("x")
    assert not ws.in_use("y")


def test_label_released_after_exception():
    ws = Workspace()
    with pytest.raises(KeyError):
        with ws.acquire("x"):
            raise KeyError("boom")
    assert not ws.in_use("x")


def test_arenas_are_thread_local():
    ws = Workspace()
    main = ws.array(np.float64, 5, "a")
    seen = {}

    def worker():
        seen["buffer"] = ws.array(np.float64, 5, "a")
        with ws.acquire("a"):
            seen["in_use"] = ws.in_use("a")

    with ws.acquire("a"):
        t = threading.Thread(target=worker)
        t.start()
        t.join()

    assert seen["buffer"] is not main
    assert seen["in_use"]


def test_clear_and_nbytes():
    ws = Workspace()
    ws.array(np.float64, 10, "a")
    ws.array(np.float64, 5, "b")
    assert ws.nbytes() == 120
    ws.clear("a")
    assert ws.nbytes() == 40
    ws.clear()
    assert ws.nbytes() == 0
    assert "buffers=0" in repr(ws)


def test_module_level_array_uses_shared_workspace():
    a = array(np.complex128, 3, "tests.shared")
    assert a is WORKSPACE.array(np.complex128, (3,), "tests.shared")
    WORKSPACE.clear("tests.shared")
