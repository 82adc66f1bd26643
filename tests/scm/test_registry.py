"""Tests for the in-memory source owner registry."""

import threading

from gogs_branch_source.scm.registry import InMemorySourceRegistry, SCMSourceOwner, SourceOwner


def test_add_remove(make_source):
    registry = InMemorySourceRegistry()
    owner = SourceOwner(name="proj", sources=[make_source()])

    registry.add(owner)
    registry.add(owner)
    assert registry.all_owners() == [owner]

    registry.remove(owner)
    assert len(registry) == 0


def test_source_owner_satisfies_protocol(make_source):
    assert isinstance(SourceOwner(name="proj", sources=[make_source()]), SCMSourceOwner)


def test_reindex_callback(make_source):
    seen = []
    source = make_source()
    owner = SourceOwner(name="proj", sources=[source], on_reindex=seen.append)

    owner.on_scm_source_updated(source)

    assert seen == [source]


def test_concurrent_adds():
    registry = InMemorySourceRegistry()
    owners = [SourceOwner(name=f"p{i}") for i in range(50)]

    threads = [threading.Thread(target=registry.add, args=(owner,)) for owner in owners]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry) == 50
