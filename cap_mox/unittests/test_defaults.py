"""Unit tests for :mod:`cap_mox.defaults`."""

from __future__ import annotations

import collections.abc as cabc
import typing as t

import pytest

from cap_mox import DefaultValue, Mock
from cap_mox.defaults import (
    EmptyDefaultValueProvider,
    MockDefaultValueProvider,
    empty_value,
    provider_for,
)
from cap_mox.members import registry_for
from cap_mox.unittests._capabilities import Repository, Service


@pytest.mark.parametrize(
    ("annotation", "expected"),
    [
        (int, 0),
        (float, 0.0),
        (bool, False),
        (str, ""),
        (bytes, b""),
        (list[int], []),
        (dict[str, int], {}),
        (set[str], set()),
        (tuple[int, ...], ()),
        (cabc.Sequence[int], []),
        (cabc.Mapping[str, int], {}),
        (t.Annotated[int, "meta"], 0),
        (None, None),
        (type(None), None),
        (int | None, None),
        (t.Optional[str], None),  # noqa: UP045
        (Repository, None),
        ("unresolved", None),
    ],
)
def test_empty_value(annotation: object, expected: object) -> None:
    """Zero or empty values are derived from the annotation."""
    assert empty_value(annotation) == expected


def test_empty_iterators_are_exhausted() -> None:
    """Iterator annotations produce empty iterators."""
    assert list(t.cast("cabc.Iterator[int]", empty_value(cabc.Iterator[int]))) == []


def test_provider_for_strategy() -> None:
    """Each strategy has its provider."""
    assert isinstance(provider_for(DefaultValue.EMPTY), EmptyDefaultValueProvider)
    assert isinstance(provider_for(DefaultValue.MOCK), MockDefaultValueProvider)


def test_mock_provider_falls_back_to_empty_values() -> None:
    """Non-mockable return types still get empty values."""
    mock = Mock(Repository)
    provider = MockDefaultValueProvider()
    assert provider.provide_default(registry_for(Repository)["keys"], mock) == []


def test_mock_provider_caches_children_per_member() -> None:
    """The same member always yields the same child substitute."""
    mock = Mock(Service)
    provider = MockDefaultValueProvider()
    info = registry_for(Service)["repository"]
    first = provider.provide_default(info, mock)
    assert isinstance(first, Repository)
    assert provider.provide_default(info, mock) is first
    assert len(mock.inner_mocks) == 1
