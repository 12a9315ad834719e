from annotations.domain.entities import (
    Annotation,
    AnnotationKind,
    Commit,
    EditOperation,
    Snapshot,
)
from annotations.domain.transform import apply_commit, synthesize_annotations
from conftest import T0, T1, T2


def ann(start: int, end: int, created_at=T0) -> Annotation:
    return Annotation(start_line=start, end_line=end, created_at=created_at)


def lines(annotations: list[Annotation]) -> list[tuple[int, int]]:
    return [(a.start_line, a.end_line) for a in annotations]


def insertion(line: int, added: int) -> EditOperation:
    return EditOperation(
        start_line=line,
        end_line=line,
        inserted_text="x = 1\n" * added,
        added_line_count=added,
    )


def test_synthesize_one_annotation_per_edit_in_original_order():
    result = synthesize_annotations([insertion(10, 2), insertion(2, 1)], now=T1)
    assert lines(result) == [(10, 12), (2, 3)]
    assert all(a.created_at == T1 for a in result)
    assert all(a.kind == AnnotationKind.TOOL_GENERATED for a in result)


def test_synthesize_single_line_edit_covers_its_line():
    edit = EditOperation(start_line=4, end_line=4, inserted_text="print('hi')")
    assert lines(synthesize_annotations([edit], now=T1)) == [(4, 4)]


def test_empty_commit_is_identity_on_annotations():
    snapshot = Snapshot(annotations=[ann(1, 3), ann(8, 9)], last_updated_at=T0, document_version=4)
    result = apply_commit(snapshot, Commit(target_version=5, is_significant=True, edits=[]), now=T1)

    assert result.annotations == snapshot.annotations
    assert result.document_version == 5
    assert result.last_updated_at == T1


def test_empty_snapshot_with_empty_commit():
    result = apply_commit(Snapshot.empty(T0), Commit(target_version=1, is_significant=False), now=T1)
    assert result.annotations == []
    assert result.document_version == 1


def test_significant_commit_adds_annotation():
    commit = Commit(target_version=2, is_significant=True, edits=[insertion(3, 3)])
    result = apply_commit(Snapshot.empty(T0), commit, now=T1)

    assert lines(result.annotations) == [(3, 6)]
    assert result.annotations[0].created_at == T1


def test_new_annotation_merges_with_adjacent_existing_one():
    snapshot = Snapshot(annotations=[ann(1, 2)], last_updated_at=T0, document_version=1)
    commit = Commit(target_version=2, is_significant=True, edits=[insertion(3, 3)])
    result = apply_commit(snapshot, commit, now=T1)

    assert lines(result.annotations) == [(1, 6)]
    assert result.annotations[0].created_at == T1


def test_insignificant_commit_only_reshapes_existing_annotations():
    snapshot = Snapshot(annotations=[ann(5, 8)], last_updated_at=T0, document_version=1)
    edit = EditOperation(start_line=6, end_line=6, start_char=2, end_char=2, inserted_text="y")
    result = apply_commit(snapshot, Commit(target_version=2, is_significant=False, edits=[edit]), now=T1)

    assert lines(result.annotations) == [(5, 5), (7, 8)]


def test_several_significant_edits_are_merged_and_sorted():
    commit = Commit(target_version=3, is_significant=True, edits=[insertion(10, 2), insertion(2, 1)])
    result = apply_commit(Snapshot.empty(T0), commit, now=T1)
    assert lines(result.annotations) == [(2, 3), (10, 12)]


def test_input_snapshot_is_not_modified():
    snapshot = Snapshot(annotations=[ann(5, 8)], last_updated_at=T0, document_version=1)
    apply_commit(snapshot, Commit(target_version=2, is_significant=True, edits=[insertion(6, 4)]), now=T1)

    assert lines(snapshot.annotations) == [(5, 8)]
    assert snapshot.document_version == 1


def test_default_timestamp_is_timezone_aware():
    result = apply_commit(Snapshot.empty(T0), Commit(target_version=1, is_significant=True, edits=[insertion(1, 1)]))
    assert result.last_updated_at.tzinfo is not None
    assert result.annotations[0].created_at == result.last_updated_at


def test_commit_sequence_never_produces_overlaps():
    commits = [
        Commit(1, True, [insertion(1, 5)]),
        Commit(2, True, [insertion(10, 3), insertion(4, 2)]),
        Commit(3, False, [EditOperation(start_line=3, end_line=3, inserted_text="z")]),
        Commit(4, True, [insertion(7, 1), insertion(20, 4)]),
        Commit(5, False, [EditOperation(start_line=2, end_line=9, deleted_line_count=7)]),
        Commit(6, True, [insertion(2, 2), insertion(5, 0)]),
    ]
    snapshot = Snapshot.empty(T0)
    for i, commit in enumerate(commits):
        snapshot = apply_commit(snapshot, commit, now=T2 if i % 2 else T1)
        assert snapshot.document_version == commit.target_version
        for a in snapshot.annotations:
            assert a.start_line <= a.end_line
        for prev, nxt in zip(snapshot.annotations, snapshot.annotations[1:]):
            assert nxt.start_line > prev.end_line + 1
