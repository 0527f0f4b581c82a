"""Tests for destination collision resolution."""
import threading
from pathlib import Path

from shoebox.services.deduplicator import (
    DuplicateResolver,
    duplicate_candidate,
    exists_case_insensitive,
)

from fixtures import touch


class TestDuplicateCandidate:
    def test_with_extension(self):
        assert duplicate_candidate(Path("/d/IMG_1.jpg"), 1) == Path("/d/IMG_1_duplicate_1.jpg")

    def test_without_extension(self):
        assert duplicate_candidate(Path("/d/README"), 2) == Path("/d/README_duplicate_2")


class TestExistsCaseInsensitive:
    def test_exact(self, tmp_path):
        touch(tmp_path / "a.jpg")
        assert exists_case_insensitive(tmp_path / "a.jpg")

    def test_case_variant(self, tmp_path):
        touch(tmp_path / "IMG_1.JPG")
        assert exists_case_insensitive(tmp_path / "img_1.jpg")

    def test_missing_parent(self, tmp_path):
        assert not exists_case_insensitive(tmp_path / "nope" / "a.jpg")


class TestDuplicateResolver:
    """Tests for DuplicateResolver."""

    def test_unique_path_is_claimed(self, tmp_path):
        resolver = DuplicateResolver()
        target = tmp_path / "2020" / "01-01" / "a.jpg"

        result = resolver.check(target)

        assert result.path == target
        assert not result.is_duplicate
        assert result.suffix is None
        assert resolver.is_claimed(target)
        assert resolver.claimed_count == 1

    def test_existing_file_gets_suffix(self, tmp_path):
        target = touch(tmp_path / "a.jpg")
        resolver = DuplicateResolver()

        first = resolver.check(target)
        second = resolver.check(target)

        assert first.is_duplicate
        assert first.path == tmp_path / "a_duplicate_1.jpg"
        assert first.original_path == target
        assert first.suffix == "_duplicate_1"
        assert second.path == tmp_path / "a_duplicate_2.jpg"

    def test_claimed_twice_in_one_pass(self, tmp_path):
        resolver = DuplicateResolver()
        target = tmp_path / "a.jpg"

        assert not resolver.check(target).is_duplicate
        dup = resolver.check(target)
        assert dup.path == tmp_path / "a_duplicate_1.jpg"

    def test_case_insensitive_claims(self, tmp_path):
        resolver = DuplicateResolver()
        resolver.check(tmp_path / "IMG.JPG")
        assert resolver.check(tmp_path / "img.jpg").is_duplicate

    def test_skips_existing_candidates(self, tmp_path):
        touch(tmp_path / "a.jpg")
        touch(tmp_path / "a_duplicate_1.jpg")
        resolver = DuplicateResolver()
        assert resolver.check(tmp_path / "a.jpg").path == tmp_path / "a_duplicate_2.jpg"

    def test_reset(self, tmp_path):
        resolver = DuplicateResolver()
        resolver.check(tmp_path / "a.jpg")
        resolver.reset()
        assert resolver.claimed_count == 0
        assert not resolver.check(tmp_path / "a.jpg").is_duplicate

    def test_claim_and_unclaim(self, tmp_path):
        resolver = DuplicateResolver()
        path = tmp_path / "edited.jpg"
        resolver.claim(path)
        assert resolver.check(path).is_duplicate

        resolver.unclaim(path)
        resolver.unclaim(tmp_path / "edited_duplicate_1.jpg")
        assert resolver.claimed_count == 0
        assert not resolver.check(path).is_duplicate

    def test_concurrent_checks_never_share_a_name(self, tmp_path):
        resolver = DuplicateResolver()
        target = tmp_path / "a.jpg"
        results = []
        lock = threading.Lock()

        def worker():
            for _ in range(20):
                path = resolver.check(target).path
                with lock:
                    results.append(path)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 80
        assert len(set(results)) == 80
