"""Property-based tests for the Revision and ChangesetEntry models.

**Feature: p4-poller, Property 1: Revision identity is the changelist number**
**Feature: p4-poller, Property 2: Revisions order numerically**
**Feature: p4-poller, Property 3: Changesets are path-sorted**
"""

from datetime import datetime, timezone

import pytest
import structlog
from hypothesis import given, settings
from hypothesis import strategies as st
from pydantic import ValidationError

from p4poller.models.revision import ChangesetEntry, Revision

log = structlog.stdlib.get_logger()


@st.composite
def changeset_entry_strategy(draw: st.DrawFn) -> ChangesetEntry:
    operation = draw(st.sampled_from(["add", "edit", "delete", "branch", "integrate"]))
    name = draw(st.text(min_size=1, max_size=12, alphabet="abcdefghij/._"))
    return ChangesetEntry(operation=operation, path=f"//depot/{name}")


@st.composite
def revision_strategy(draw: st.DrawFn, number: int | None = None) -> Revision:
    if number is None:
        number = draw(st.integers(min_value=0, max_value=10**7))
    return Revision(
        number=number,
        author=draw(st.text(max_size=20)),
        timestamp=draw(st.datetimes(timezones=st.just(timezone.utc))),
        message=draw(st.text(max_size=50)),
        changeset=tuple(draw(st.lists(changeset_entry_strategy(), max_size=8))),
    )


@given(st.integers(min_value=0, max_value=10**7), st.data())
@settings(max_examples=100)
def test_property_1_equal_numbers_mean_equal_revisions(number: int, data: st.DataObject):
    """Property 1: Two revisions with the same number are equal, whatever else differs.

    **Feature: p4-poller, Property 1: Revision identity is the changelist number**
    """
    a = data.draw(revision_strategy(number=number))
    b = data.draw(revision_strategy(number=number))

    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1
    assert not a < b and not a > b
    assert a <= b and a >= b


@given(revision_strategy(), revision_strategy())
@settings(max_examples=100)
def test_property_2_ordering_matches_numbers(a: Revision, b: Revision):
    """Property 2: Revision ordering is total and follows the numeric order.

    **Feature: p4-poller, Property 2: Revisions order numerically**
    """
    assert (a < b) == (a.number < b.number)
    assert (a > b) == (a.number > b.number)
    assert (a == b) == (a.number == b.number)
    assert (a <= b) or (a >= b)


@given(st.lists(revision_strategy(), max_size=20))
@settings(max_examples=50)
def test_property_2_sorting_revisions_sorts_numbers(revisions: list[Revision]):
    """Sorting revisions yields ascending changelist numbers."""
    assert [r.number for r in sorted(revisions)] == sorted(r.number for r in revisions)


@given(st.lists(changeset_entry_strategy(), max_size=15))
@settings(max_examples=100)
def test_property_3_changeset_sorted_by_path(entries: list[ChangesetEntry]):
    """Property 3: A revision keeps its changeset sorted by path whatever order it was given in.

    **Feature: p4-poller, Property 3: Changesets are path-sorted**
    """
    revision = Revision(number=1, changeset=tuple(entries))

    paths = [entry.path for entry in revision.changeset]
    assert paths == sorted(paths)
    assert sorted(revision.changeset, key=lambda e: (e.path, e.operation)) == sorted(
        entries, key=lambda e: (e.path, e.operation)
    )


def test_revision_is_immutable():
    """Revisions and entries cannot be modified after construction."""
    revision = Revision(number=7, author="alice")
    entry = ChangesetEntry(operation="add", path="//depot/a.txt")

    with pytest.raises(ValidationError):
        revision.number = 8  # type: ignore[misc]
    with pytest.raises(ValidationError):
        entry.path = "//depot/b.txt"  # type: ignore[misc]


def test_revision_with_only_a_number():
    """A bare number is enough to build a comparable revision."""
    revision = Revision(number=10)

    assert revision.author == ""
    assert revision.timestamp is None
    assert revision.changeset == ()
    assert Revision(number=12) > revision


def test_revision_rejects_negative_number():
    with pytest.raises(ValidationError):
        Revision(number=-1)


def test_revision_does_not_equal_plain_int():
    assert Revision(number=3) != 3


def test_string_forms():
    revision = Revision(
        number=42,
        author="bob",
        timestamp=datetime(2024, 1, 15, tzinfo=timezone.utc),
        changeset=(ChangesetEntry(operation="edit", path="//depot/x.c"),),
    )

    assert str(revision) == "Revision 42 committed by bob"
    assert str(revision.changeset[0]) == "edit //depot/x.c"
