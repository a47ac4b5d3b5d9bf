# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for catalog value objects and packaging policies."""

from __future__ import annotations

import pytest

from romaudit.models import Checksum, ContentPart, DumpStatus, Machine, PartRef, Relation
from romaudit.policy import DEFAULT_POLICY, PackagingPolicy


def test_checksum_normalises_case_prefix_and_padding() -> None:
    checksum = Checksum(crc32="0xABC", sha1="A9993E364706816ABA3E25717850C26C9CD0D89D")

    assert checksum.crc32 == "00000abc"
    assert checksum.sha1 == "a9993e364706816aba3e25717850c26c9cd0d89d"
    assert str(checksum) == "crc32:00000abc sha1:a9993e364706816aba3e25717850c26c9cd0d89d"


def test_checksum_requires_a_digest() -> None:
    with pytest.raises(ValueError):
        Checksum()
    with pytest.raises(ValueError):
        Checksum(crc32="  ")


def test_checksum_rejects_malformed_digest() -> None:
    with pytest.raises(ValueError, match="crc32"):
        Checksum(crc32="not-hex!")
    with pytest.raises(ValueError, match="sha1"):
        Checksum(sha1="abc123" * 10)


def test_checksum_matches_on_shared_digests_only() -> None:
    full = Checksum(crc32="cbf43926", sha1="f7c3bc1d808e04732adf679965ccc34ca7ae3441")

    assert full.matches(Checksum(crc32="CBF43926"))
    assert Checksum(sha1="f7c3bc1d808e04732adf679965ccc34ca7ae3441").matches(full)
    assert not full.matches(Checksum(crc32="00000000"))
    assert not full.matches(Checksum(crc32="cbf43926", sha1="0" * 40))
    # Disjoint digests cannot prove identity.
    assert not Checksum(crc32="cbf43926").matches(Checksum(sha1="f7c3bc1d808e04732adf679965ccc34ca7ae3441"))


def test_checksum_md5_is_compared_when_both_sides_carry_it() -> None:
    computed = Checksum(
        crc32="cbf43926",
        sha1="f7c3bc1d808e04732adf679965ccc34ca7ae3441",
        md5="25F9E794323B453885F5181F1B624D0B",
    )

    assert computed.md5 == "25f9e794323b453885f5181f1b624d0b"
    assert Checksum(md5="25f9e794323b453885f5181f1b624d0b").matches(computed)
    assert not computed.matches(Checksum(crc32="cbf43926", md5="0" * 32))
    assert computed.matches(Checksum(crc32="cbf43926"))
    assert str(Checksum(md5="25f9e794323b453885f5181f1b624d0b")) == "md5:25f9e794323b453885f5181f1b624d0b"
    with pytest.raises(ValueError, match="md5"):
        Checksum(md5="xyz")


def test_part_without_checksum_is_a_nodump() -> None:
    part = ContentPart(machine="m", name="a.bin")

    assert part.status is DumpStatus.NODUMP
    assert part.is_nodump


def test_nodump_status_discards_checksum() -> None:
    part = ContentPart(machine="m", name="a.bin", checksum=Checksum(crc32="12345678"), status=DumpStatus.NODUMP)

    assert part.checksum is None


def test_machine_parent_by_relation() -> None:
    machine = Machine("clone", cloneof="parent", romof="bios")

    assert machine.parent(Relation.CLONE_OF) == "parent"
    assert machine.parent(Relation.ROM_OF) == "bios"
    assert Machine("solo", cloneof="").parent(Relation.CLONE_OF) is None


def test_part_refs_sort_and_render() -> None:
    refs = sorted([PartRef("b", "x"), PartRef("a", "z"), PartRef("a", "y")])

    assert [str(ref) for ref in refs] == ["a:y", "a:z", "b:x"]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("split", PackagingPolicy.SPLIT),
        ("Merged", PackagingPolicy.MERGED),
        ("merge", PackagingPolicy.MERGED),
        ("non_merged", PackagingPolicy.NON_MERGED),
        ("nonmerged", PackagingPolicy.NON_MERGED),
        ("full", PackagingPolicy.NON_MERGED),
        (PackagingPolicy.SPLIT, PackagingPolicy.SPLIT),
    ],
)
def test_policy_parse_accepts_aliases(value: str | PackagingPolicy, expected: PackagingPolicy) -> None:
    assert PackagingPolicy.parse(value) is expected


def test_policy_parse_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="unknown packaging policy"):
        PackagingPolicy.parse("zipped")
    assert DEFAULT_POLICY is PackagingPolicy.NON_MERGED
