import itertools
from datetime import timedelta

import pytest

from dispatcher.dispatcher import Dispatcher
from dispatcher.grader import Grader
from dispatcher.lifecycle import SubmissionLifecycle
from dispatcher.repository import ContestRepository, SubmissionStore
from tests.factories import NOW, FakeClock, FakeInvoker, make_contest


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_invoker(fake_clock):
    return FakeInvoker(fake_clock)


@pytest.fixture
def dispatcher(fake_invoker, fake_clock):
    return Dispatcher(fake_invoker, clock=fake_clock)


@pytest.fixture
def store():
    return SubmissionStore()


@pytest.fixture
def grader(dispatcher, store):
    return Grader(dispatcher, store)


@pytest.fixture
def contest():
    return make_contest()


@pytest.fixture
def contests(contest):
    repo = ContestRepository()
    repo.add(contest)
    return repo


@pytest.fixture
def lifecycle(contests, store, grader):
    # every reading is one second later, submissions never share a timestamp
    ticks = itertools.count()
    return SubmissionLifecycle(
        contests,
        store,
        grader,
        clock=lambda: NOW + timedelta(seconds=next(ticks)),
    )
