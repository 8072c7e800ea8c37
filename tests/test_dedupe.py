from poststats.dedupe import dedupe


def raw(post_id, likes=1):
    return {"Post ID": post_id, "Account ID": "A", "Likes": likes}


def test_within_batch_duplicates(accessor):
    rows = [raw("p1"), raw("p1"), raw("p1"), raw("p2"), raw("p3")]
    result = dedupe(rows, [], "file_a", accessor)
    # N=5, K=3 sharing one id -> N-K+1 survivors
    assert len(result.filtered_records) == 3
    assert result.stats["duplicates"] == 2
    assert result.stats["total_rows"] == 5
    assert result.stats["duplicate_ids"] == ["p1|file_a"]


def test_first_occurrence_survives(accessor):
    rows = [raw("p1", likes=1), raw("p1", likes=2)]
    result = dedupe(rows, [], "file_a", accessor)
    assert result.new_records == [rows[0]]


def test_same_posts_from_another_file_are_kept(accessor):
    existing = [
        {"post_id": "p1", "likes": 1, "_file_identifier": "file_a"},
        {"post_id": "p2", "likes": 1, "_file_identifier": "file_a"},
    ]
    result = dedupe([raw("p1"), raw("p2")], existing, "file_b", accessor)
    assert result.stats["duplicates"] == 0
    assert len(result.filtered_records) == 4
    assert len(result.new_records) == 2
    assert result.stats["total_rows"] == 4


def test_collision_with_existing_key_is_dropped(accessor):
    existing = [{"post_id": "p1", "_file_identifier": "file_a"}]
    result = dedupe([raw("p1"), raw("p9")], existing, "file_a", accessor)
    assert result.stats["duplicates"] == 1
    assert [r["Post ID"] for r in result.new_records] == ["p9"]
    assert result.filtered_records[0] is existing[0]


def test_numeric_and_text_ids_match(accessor):
    result = dedupe([{"Post ID": 12}, {"Post ID": "12"}], [], "f", accessor)
    assert result.stats["duplicates"] == 1


def test_rows_without_post_id_use_whole_record(accessor):
    rows = [
        {"Account ID": "A", "Likes": 1},
        {"Account ID": "A", "Likes": 1},
        {"Account ID": "A", "Likes": 2},
    ]
    result = dedupe(rows, [], "f", accessor)
    assert result.stats["duplicates"] == 1
    assert len(result.new_records) == 2
    assert result.stats["duplicate_ids"] == []


def test_leading_zeros_keep_posts_apart(accessor):
    result = dedupe([raw("007"), raw("7")], [], "f", accessor)
    assert result.stats["duplicates"] == 0
    assert len(result.new_records) == 2
