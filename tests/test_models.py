from conftest import make_record

from reposcrape.core.models import AggregatedView, Project, RepoDetails


def test_records_with_same_uid_are_equal_and_hash_alike():
    older = make_record("user/a", last_update=10, last_sync=1)
    newer = make_record("user/a", last_update=20, last_sync=2)

    assert older == newer
    assert hash(older) == hash(newer)
    assert len({older, newer}) == 1


def test_records_with_different_uid_are_not_equal():
    assert make_record("user/a") != make_record("user/b")
    assert make_record("user/a", origin="github") != make_record("user/a", origin="gitlab")


def test_ordering_uses_last_update_then_uid():
    early = make_record("user/z", last_update=10)
    late = make_record("user/a", last_update=20)
    tie_a = make_record("user/a", last_update=30)
    tie_b = make_record("user/b", last_update=30)

    assert early < late
    assert tie_a < tie_b
    assert sorted([tie_b, late, early, tie_a]) == [early, late, tie_a, tie_b]


def test_same_uid_orders_by_last_sync():
    first = make_record("user/a", last_update=50, last_sync=1)
    second = make_record("user/a", last_update=5, last_sync=2)

    assert first < second
    assert not second < first
    assert second > first
    assert not first > second
    assert max([first, second]) is second


def test_set_keeps_first_inserted_record():
    kept = make_record("user/a", last_update=1)
    duplicate = make_record("user/a", last_update=2)

    records = {kept}
    records.add(duplicate)

    assert len(records) == 1
    assert next(iter(records)).last_update == 1


def test_display_name_prefers_title():
    titled = make_record("user/a", details=RepoDetails(title="Nice Title"))
    untitled = make_record("user/b", details=RepoDetails(project="p"))

    assert titled.display_name == "Nice Title"
    assert untitled.display_name == "b"
    assert make_record("user/c").display_name == "c"


def test_project_size_and_single_member():
    main = make_record("user/main", last_update=1)
    project = Project(name="P", main=main)

    assert project.size() == 1
    assert project.is_single()
    assert project.get_single() is main

    sub = make_record("user/sub", last_update=2)
    project.subs.add(sub)

    assert project.size() == 2
    assert not project.is_single()
    assert project.get_single() is None


def test_single_sub_without_main():
    sub = make_record("user/sub")
    project = Project(name="P", subs={sub})

    assert project.get_single() is sub


def test_members_lists_main_then_newest_subs():
    main = make_record("user/main", last_update=1)
    old = make_record("user/old", last_update=2)
    new = make_record("user/new", last_update=3)
    project = Project(name="P", main=main, subs={old, new})

    assert list(project.members()) == [main, new, old]


def test_aggregated_view_records():
    solo = make_record("user/solo")
    main = make_record("user/main")
    view = AggregatedView(
        repos={solo.uid: solo},
        projects={"P": Project(name="P", main=main)},
    )

    assert set(view.records()) == {solo, main}
    assert not view.is_empty()
    assert AggregatedView().is_empty()
