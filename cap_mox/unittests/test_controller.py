"""Unit tests for :mod:`cap_mox.controller`."""

from __future__ import annotations

import asyncio
import threading

import pytest

import cap_mox
from cap_mox import (
    Any,
    ConfigurationError,
    DefaultValue,
    IsA,
    Mock,
    MockBehavior,
    MockRepository,
    Times,
    UnmatchedStrictCallError,
    UnsupportedCapabilityError,
    VerificationError,
)
from cap_mox.unittests._capabilities import (
    Calculator,
    Clock,
    Disposable,
    Fetcher,
    Greeter,
    Journal,
    Node,
    Repository,
    Service,
    Settings,
)


def test_setup_returns_value_for_matching_call() -> None:
    """Configured calls return their value; others fall back to defaults."""
    calc = Mock(Calculator)
    calc.setup(lambda c: c.add(1, 2)).returns(3)

    assert calc.object.add(1, 2) == 3
    assert calc.object.add(2, 2) == 0

    calc.verify(lambda c: c.add(1, 2), Times.once())
    calc.verify(lambda c: c.add(9, 9), Times.never())


def test_substitute_implements_capability() -> None:
    """The substitute is an instance of the mocked class."""
    calc = Mock(Calculator)
    assert isinstance(calc.object, Calculator)
    assert calc.object is calc.object
    assert repr(calc.object) == "<substitute Calculator>"


def test_later_setups_take_precedence() -> None:
    """The most recently registered matching setup wins."""
    calc = Mock(Calculator)
    calc.setup(lambda c: c.add(1, 2)).returns(3)
    calc.setup(lambda c: c.add(1, 2)).returns(4)
    assert calc.object.add(1, 2) == 4

    calc.setup(lambda c: c.add(Any(int), Any(int))).returns(-1)
    assert calc.object.add(1, 2) == -1
    assert calc.object.add(5, 6) == -1


def test_keyword_arguments_match_positional_setups() -> None:
    """Calls are normalised before matching."""
    calc = Mock(Calculator)
    calc.setup(lambda c: c.add(1, b=2)).returns(3)
    assert calc.object.add(a=1, b=2) == 3


def test_returns_from_callback_and_throws() -> None:
    """Behaviours receive the call arguments."""
    calc = Mock(Calculator)
    seen: list[tuple[int, int]] = []
    calc.setup(lambda c: c.add(IsA(int), IsA(int))).callback(
        lambda a, b: seen.append((a, b))
    ).returns_from(lambda a, b: a * b)
    calc.setup(lambda c: c.add(0, Any())).throws(ZeroDivisionError("zero"))

    assert calc.object.add(3, 4) == 12
    with pytest.raises(ZeroDivisionError, match="zero"):
        calc.object.add(0, 1)
    assert seen == [(3, 4)]


def test_throws_accepts_classes_and_factories() -> None:
    """Exception classes are instantiated; factories get the arguments."""
    repo = Mock(Repository)
    repo.setup(lambda r: r.find("missing")).throws(KeyError)
    repo.setup(lambda r: r.find("bad")).throws(lambda key: LookupError(key))

    with pytest.raises(KeyError):
        repo.object.find("missing")
    with pytest.raises(LookupError, match="bad"):
        repo.object.find("bad")


def test_strict_mock_rejects_unconfigured_calls() -> None:
    """Strict mocks fail fast on unmatched calls."""
    calc = Mock(Calculator, MockBehavior.STRICT)
    with pytest.raises(UnmatchedStrictCallError) as excinfo:
        calc.object.add(1, 2)
    assert str(excinfo.value) == (
        "Calculator.add(1, 2) invocation failed with mock behavior Strict.\n"
        "All invocations on the mock must have a corresponding setup."
    )
    calc.setup(lambda c: c.add(1, 2)).returns(3)
    assert calc.object.add(1, 2) == 3
    assert len(calc.invocations) == 2


def test_strict_mock_accepts_behavior_name() -> None:
    """The behaviour can be given by its value."""
    assert Mock(Calculator, "strict").is_strict
    assert not Mock(Calculator).is_strict


def test_property_setup_get_and_set() -> None:
    """Property reads and writes are configured and verified separately."""
    service = Mock(Service)
    service.setup_get(lambda s: s.name).returns("svc")
    assigned: list[str] = []
    service.setup_set(lambda s: s.name, IsA(str)).callback(assigned.append)

    assert service.object.name == "svc"
    service.object.name = "other"
    assert assigned == ["other"]

    service.verify_get(lambda s: s.name, Times.once())
    service.verify_set(lambda s: s.name, "other", Times.once())
    service.verify_set(lambda s: s.name, "nope", Times.never())


def test_setup_set_rejects_read_only_property() -> None:
    """Read-only properties cannot be assigned."""
    calc = Mock(Calculator)
    with pytest.raises(ConfigurationError, match="not writable"):
        calc.setup_set(lambda c: c.total, 5)


def test_setup_get_requires_a_property() -> None:
    """Methods are not properties."""
    with pytest.raises(ConfigurationError, match="is not a property"):
        Mock(Calculator).setup_get(lambda c: c.add(1, 2))


def test_setup_property_tracks_assignments() -> None:
    """Stubbed properties remember the last value written."""
    service = Mock(Service)
    service.setup_property(lambda s: s.name, "initial")
    assert service.object.name == "initial"
    service.object.name = "changed"
    assert service.object.name == "changed"


def test_protocol_attributes_are_properties() -> None:
    """Protocol attributes can be stubbed like properties."""
    clock = Mock(Clock)
    clock.setup_property(lambda c: c.now, 1.5)
    clock.setup(lambda c: c.tick()).returns(2.5)

    assert clock.object.now == 1.5
    assert clock.object.tick() == 2.5
    assert clock.object.tick(seconds=1.0) == 2.5
    assert clock.object.tick(3.0) == 0.0


def test_setup_all_properties() -> None:
    """Every readable property gets a default and remembers writes."""
    service = Mock(Service, default_value=DefaultValue.MOCK).setup_all_properties()
    substitute = service.object

    assert substitute.name == ""
    substitute.name = "renamed"
    assert substitute.name == "renamed"
    assert isinstance(substitute.repository, Repository)
    assert substitute.repository is substitute.repository


def test_setup_rejects_members_that_cannot_be_intercepted() -> None:
    """Fields, static methods and final methods cannot be set up."""
    settings = Mock(Settings)
    with pytest.raises(ConfigurationError, match="non-overridable"):
        settings.setup(lambda s: s.limit)
    with pytest.raises(ConfigurationError, match="static members"):
        settings.setup(lambda s: s.create())
    with pytest.raises(ConfigurationError, match="non-overridable"):
        settings.setup(lambda s: s.frozen())
    assert settings.object.frozen() == 1
    assert settings.object.limit == 10


def test_default_values_follow_return_types() -> None:
    """Loose mocks return empty values based on annotations."""
    repo = Mock(Repository)
    assert repo.object.find("a") is None
    assert repo.object.keys() == []
    assert Mock(Calculator).object.total == 0


def test_mock_default_value_returns_cached_children() -> None:
    """``DefaultValue.MOCK`` auto-mocks mockable return types."""
    service = Mock(Service, default_value=DefaultValue.MOCK)
    repo = service.object.repository
    assert isinstance(repo, Repository)
    assert service.object.repository is repo
    assert Mock.get(repo).name == "Service.repository"


def test_default_value_can_be_changed() -> None:
    """Switching strategy applies to subsequent calls."""
    service = Mock(Service)
    assert service.object.repository is None
    service.default_value = "mock"
    assert isinstance(service.object.repository, Repository)


def test_call_base_for_mock() -> None:
    """Unmatched calls run the real implementation when enabled."""
    greeter = Mock(Greeter, call_base=True, constructor_args=("hi",))
    assert greeter.object.greet("bob") == "hi bob"
    assert greeter.object.loud is False

    greeter.setup(lambda g: g.greet("ann")).returns("custom")
    assert greeter.object.greet("ann") == "custom"


def test_call_base_for_expectation() -> None:
    """A single expectation can delegate to the real implementation."""
    greeter = Mock(Greeter, constructor_args=())
    greeter.setup(lambda g: g.greet(Any(str))).call_base()
    assert greeter.object.greet("bob") == "hello bob"


def test_call_base_ignores_abstract_members() -> None:
    """Abstract members have no implementation to call."""
    calc = Mock(Calculator, call_base=True)
    assert calc.object.add(1, 2) == 0


def test_constructor_args_rejected_for_protocols() -> None:
    """Protocols have no constructor."""
    with pytest.raises(ConfigurationError, match="no constructor"):
        Mock(Clock, constructor_args=())


@pytest.mark.parametrize("capability", [int, str, bool])
def test_unmockable_capabilities_are_rejected(capability: type) -> None:
    """Builtin value types cannot be mocked."""
    with pytest.raises(UnsupportedCapabilityError):
        Mock(capability)


def test_as_adds_interfaces_before_materialisation() -> None:
    """Additional interfaces extend the substitute."""
    calc = Mock(Calculator)
    closed: list[bool] = []
    assert calc.as_(Disposable) is calc
    calc.setup(lambda c: c.close()).callback(lambda: closed.append(True))

    substitute = calc.object
    assert isinstance(substitute, Calculator)
    assert isinstance(substitute, Disposable)
    substitute.close()
    assert closed == [True]
    assert Mock.get(substitute, Disposable) is calc
    assert calc.as_(Disposable) is calc


def test_as_rejected_after_materialisation() -> None:
    """The substitute's type is fixed once created."""
    calc = Mock(Calculator)
    assert calc.object is not None
    with pytest.raises(UnsupportedCapabilityError, match="already created"):
        calc.as_(Disposable)


def test_as_requires_an_interface() -> None:
    """Concrete classes cannot be added as extra capabilities."""
    with pytest.raises(UnsupportedCapabilityError, match="only interfaces"):
        Mock(Calculator).as_(Greeter)


def test_get_rejects_foreign_objects_and_missing_capabilities() -> None:
    """``Mock.get`` only accepts substitutes implementing the capability."""
    calc = Mock(Calculator)
    with pytest.raises(ConfigurationError, match="not created by a cap_mox mock"):
        Mock.get(object())
    with pytest.raises(ConfigurationError, match="does not implement Disposable"):
        Mock.get(calc.object, Disposable)


def test_module_level_helpers_accept_substitutes() -> None:
    """``setup``/``verify`` work from either the mock or its substitute."""
    calc = Mock(Calculator)
    cap_mox.setup(calc.object, lambda c: c.add(1, 1)).returns(2)
    assert calc.object.add(1, 1) == 2
    cap_mox.verify(calc.object, lambda c: c.add(1, 1))
    cap_mox.verify(calc, lambda c: c.add(1, 1), Times.once())


def test_setup_through_captured_substitute() -> None:
    """Expressions may call a substitute captured from another mock."""
    repo_mock = Mock(Repository)
    repo = repo_mock.object
    service = Mock(Service)
    service.setup(lambda s: repo.find("a")).returns("z")

    assert repo.find("a") == "z"
    repo_mock.verify(lambda r: r.find("a"), Times.once())


def test_async_methods_dispatch_when_awaited() -> None:
    """Coroutine methods return awaitables resolving to the configured value."""
    fetcher = Mock(Fetcher)
    fetcher.setup(lambda f: f.fetch("https://example.test")).returns(b"body")

    assert asyncio.run(fetcher.object.fetch("https://example.test")) == b"body"
    assert asyncio.run(fetcher.object.fetch("other")) == b""
    fetcher.verify(lambda f: f.fetch(Any(str)), Times.exactly(2))


def test_callbacks_may_reenter_the_mock() -> None:
    """Behaviours run without holding the interceptor lock."""
    calc = Mock(Calculator)
    calc.setup(lambda c: c.total).returns(10)
    calc.setup(lambda c: c.add(Any(), Any())).returns_from(
        lambda a, b: a + b + calc.object.total
    )
    assert calc.object.add(1, 2) == 13


def test_concurrent_calls_are_all_recorded() -> None:
    """Calls from several threads are counted exactly."""
    calc = Mock(Calculator)
    calc.setup(lambda c: c.add(Any(int), Any(int))).returns(1)
    thread_count = 8
    calls_per_thread = 50

    def worker() -> None:
        for index in range(calls_per_thread):
            calc.object.add(index, index)

    threads = [threading.Thread(target=worker) for _ in range(thread_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    total = thread_count * calls_per_thread
    calc.verify(lambda c: c.add(Any(int), Any(int)), Times.exactly(total))
    assert [inv.index for inv in calc.invocations] == list(range(total))


def test_repository_shares_defaults_and_verifies_on_exit() -> None:
    """Mocks created by a repository are verified together."""
    with pytest.raises(VerificationError, match="Calculator.add"):
        with MockRepository(MockBehavior.STRICT) as repo:
            calc = repo.create(Calculator)
            assert calc.is_strict
            calc.setup(lambda c: c.add(1, 2)).returns(3).verifiable()

    with MockRepository(default_value=DefaultValue.MOCK) as repo:
        service = repo.create(Service, MockBehavior.LOOSE, name="svc")
        service.setup(lambda s: s.connect("db")).returns(None).verifiable()
        assert isinstance(service.object.repository, Repository)
        service.object.connect("db")
    assert repo.mocks == [service]


def test_repository_skips_verification_after_errors() -> None:
    """An exception inside the block is not masked by verification."""
    with pytest.raises(RuntimeError, match="inner"):
        with MockRepository() as repo:
            repo.create(Calculator).setup(lambda c: c.add(1, 2)).verifiable()
            raise RuntimeError("inner")


def test_repository_verify_all() -> None:
    """``verify_all`` also checks expectations not marked verifiable."""
    repo = MockRepository(verify_on_exit=False)
    calc = repo.create(Calculator)
    calc.setup(lambda c: c.add(1, 2))
    repo.verify()
    with pytest.raises(VerificationError, match="Mock verification failed"):
        repo.verify_all()


def test_setup_all_properties_stops_at_self_references() -> None:
    """Recursive capabilities are stubbed once along each path."""
    node = Mock(Node, default_value=DefaultValue.MOCK).setup_all_properties()
    parent = node.object.parent
    assert isinstance(parent, Node)
    assert node.object.label == ""
    assert node.object.parent is parent
    assert Mock.get(parent).interceptor.expectations() == []


def test_matchers_apply_to_each_variadic_argument() -> None:
    """Comparators inside ``*args`` match one value each."""
    journal = Mock(Journal)
    journal.setup(lambda j: j.log("a", Any())).returns(1)
    assert journal.object.log("a", 5) == 1
    assert journal.object.log("a", "x") == 1
    assert journal.object.log("a") == 0
    assert journal.object.log("a", 5, 6) == 0


def test_keyword_catch_all_matches_by_name() -> None:
    """``**kwargs`` entries match on their name and value."""
    journal = Mock(Journal)
    journal.setup(lambda j: j.log("a", level=IsA(int))).returns(2)
    assert journal.object.log("a", level=3) == 2
    assert journal.object.log("a", level="high") == 0
    assert journal.object.log("a", other=3) == 0
    journal.verify(lambda j: j.log("a", level=Any()), Times.exactly(2))


def test_callbacks_receive_variadic_arguments_unflattened() -> None:
    """User callables see the call as it was written."""
    journal = Mock(Journal)
    seen: list[tuple[object, ...]] = []
    journal.setup(lambda j: j.log(Any(), Any(), level=Any())).callback(
        lambda message, *args, **fields: seen.append((message, args, fields))
    ).returns_from(lambda message, *args, **fields: len(args) + len(fields))
    assert journal.object.log("a", 1, level=2) == 2
    assert seen == [("a", (1,), {"level": 2})]
