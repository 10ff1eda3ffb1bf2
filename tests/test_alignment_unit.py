from __future__ import annotations

from comparison.models import PageModel, SimilarityScore


def _text(seed: str) -> str:
    return " ".join(f"{seed}word{k}" for k in range(20))


def _page(page_number: int, seed: str) -> PageModel:
    return PageModel(page_number=page_number, width=600.0, height=800.0, text=_text(seed))


def _fps(seeds):
    from comparison.fingerprint import build_fingerprint

    return [build_fingerprint(_page(i + 1, seed)) for i, seed in enumerate(seeds)]


def _as_tuples(pairs):
    return [(p.base_page, p.compare_page) for p in pairs]


def test_identical_documents_align_one_to_one():
    from comparison.alignment import align_pages

    pairs = align_pages(_fps("abc"), _fps("abc"))
    assert _as_tuples(pairs) == [(1, 1), (2, 2), (3, 3)]
    assert all(p.score.value == 1.0 for p in pairs)


def test_inserted_page_is_added_in_compare_order():
    from comparison.alignment import align_pages

    pairs = align_pages(_fps("abc"), _fps("axbc"))
    assert _as_tuples(pairs) == [(1, 1), (None, 2), (2, 3), (3, 4)]


def test_deleted_page_stays_in_base_order():
    from comparison.alignment import align_pages

    pairs = align_pages(_fps("abc"), _fps("ac"))
    assert _as_tuples(pairs) == [(1, 1), (2, None), (3, 2)]


def test_every_page_appears_exactly_once():
    from comparison.alignment import align_pages

    pairs = align_pages(_fps("abcde"), _fps("xbeca"))
    base = [p.base_page for p in pairs if p.base_page is not None]
    compare = [p.compare_page for p in pairs if p.compare_page is not None]
    assert sorted(base) == [1, 2, 3, 4, 5]
    assert sorted(compare) == [1, 2, 3, 4, 5]


def test_reordered_pages_found_by_fallback_scan():
    from comparison.alignment import PageAligner
    from config.comparison_config import ComparisonConfig

    aligner = PageAligner(ComparisonConfig(max_candidates_per_page=0))
    pairs = aligner.align(_fps("ab"), _fps("ba"))

    assert _as_tuples(pairs) == [(1, 2), (2, 1)]
    assert aligner.stats.fallback_scans == 2
    assert aligner.stats.matched == 2


def test_empty_side_makes_no_scorer_calls():
    from comparison.alignment import PageAligner

    calls = []

    def scorer(a, b, cw, vw):
        calls.append((a, b))
        return SimilarityScore(1.0, 1.0, 1.0)

    aligner = PageAligner(scorer=scorer)
    pairs = aligner.align([], _fps("ab"))

    assert calls == []
    assert _as_tuples(pairs) == [(None, 1), (None, 2)]
    assert aligner.stats.added == 2

    assert _as_tuples(aligner.align(_fps("a"), [])) == [(1, None)]
    assert aligner.align([], []) == []


def test_ties_go_to_lower_indexes():
    from comparison.alignment import PageAligner

    def scorer(a, b, cw, vw):
        return SimilarityScore(0.9, 0.9, 0.9)

    pairs = PageAligner(scorer=scorer).align(_fps("ab"), _fps("cd"))
    assert _as_tuples(pairs) == [(1, 1), (2, 2)]


def test_second_best_candidate_used_when_best_is_taken():
    from comparison.alignment import PageAligner

    table = {(1, 1): 0.95, (2, 1): 0.9, (2, 2): 0.6}

    def scorer(a, b, cw, vw):
        value = table.get((a.page_number, b.page_number), 0.0)
        return SimilarityScore(value, value, value)

    pairs = PageAligner(scorer=scorer).align(_fps("ab"), _fps("cd"))
    assert _as_tuples(pairs) == [(1, 1), (2, 2)]
    assert pairs[1].score.value == 0.6


def test_unreadable_page_paired_by_position():
    from comparison.alignment import PageAligner
    from comparison.fingerprint import build_fingerprint

    base = _fps("abc")
    base[1] = build_fingerprint(PageModel.unavailable(2))
    aligner = PageAligner()
    pairs = aligner.align(base, _fps("axc"))

    assert _as_tuples(pairs) == [(1, 1), (2, 2), (3, 3)]
    assert pairs[1].score is None
    assert aligner.stats.added == 0 and aligner.stats.deleted == 0

    # Mirrored on the compare side.
    compare = _fps("axc")
    compare[1] = build_fingerprint(PageModel.unavailable(2))
    assert _as_tuples(PageAligner().align(_fps("abc"), compare)) == [(1, 1), (2, 2), (3, 3)]


def test_unreadable_page_without_free_partner_stays_unpaired():
    from comparison.alignment import align_pages
    from comparison.fingerprint import build_fingerprint

    base = _fps("ab") + [build_fingerprint(PageModel.unavailable(3))]
    assert _as_tuples(align_pages(base, _fps("ab"))) == [(1, 1), (2, 2), (3, None)]
