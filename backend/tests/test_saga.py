import pytest

from crud.saga import Saga, StepPolicy
from utils.errors import NotFound, StorageError


def _fail(message="boom"):
    raise StorageError(message)


def test_continue_steps_record_failures_and_go_on():
    saga = Saga("test")

    assert saga.run("first", lambda: _fail("first broke"), policy=StepPolicy.CONTINUE) is None
    assert saga.run("second", lambda: 42, policy=StepPolicy.CONTINUE) == 42

    outcome = saga.outcome({"id": 1})
    assert outcome.degraded
    assert outcome.as_response() == {"id": 1, "failures": [{"step": "first", "error": "first broke"}]}


def test_abort_runs_compensations_in_reverse_and_reraises():
    undone = []
    saga = Saga("test")
    saga.run("one", lambda: "a", compensate=lambda result: undone.append(("one", result)))
    saga.run("two", lambda: "b", compensate=lambda result: undone.append(("two", result)))

    with pytest.raises(StorageError):
        saga.run("three", lambda: _fail())

    assert undone == [("two", "b"), ("one", "a")]


def test_failed_compensation_does_not_mask_the_original_error():
    saga = Saga("test")
    saga.run("one", lambda: None, compensate=lambda _: _fail("undo broke"))

    with pytest.raises(StorageError) as excinfo:
        saga.run("two", lambda: _fail("original"))

    assert excinfo.value.message == "original"


def test_non_storage_errors_propagate_without_compensating():
    undone = []
    saga = Saga("test")
    saga.run("one", lambda: None, compensate=lambda _: undone.append("one"))

    def missing():
        raise NotFound("gone")

    with pytest.raises(NotFound):
        saga.run("two", missing, policy=StepPolicy.CONTINUE)
    assert undone == []


def test_clean_run_is_not_degraded():
    saga = Saga("test")
    saga.run("one", lambda: 1)

    assert not saga.outcome({"id": 7}).degraded
