"""Result cache: key derivation, labels, TTL and eviction."""

import threading

from council.infra.cache import CACHE_SUFFIX, NullCache, ResultCache, make_cache_key


class TestCacheKey:

    def test_whitespace_is_collapsed(self):
        assert make_cache_key("SALES", "a  b\n\tc ") == make_cache_key("SALES", "a b c")

    def test_role_is_part_of_the_key(self):
        assert make_cache_key("SALES", "hello") != make_cache_key("TREASURY", "hello")
        assert make_cache_key(None, "hello").startswith("-|")

    def test_long_shared_prefix_does_not_collide(self):
        prefix = "x" * 500
        a = make_cache_key("SALES", prefix + " topic A")
        b = make_cache_key("SALES", prefix + " topic B")
        assert a != b

    def test_key_length_is_bounded(self):
        key = make_cache_key("SALES", "y" * 10_000, prefix_chars=160)
        assert len(key) < 160 + 64


class TestResultCache:

    def test_miss_then_hit_with_suffixed_label(self, clock):
        cache = ResultCache(ttl_s=300, clock=clock)
        assert cache.get("SALES", "p") is None
        cache.put("SALES", "p", "answer", "groq-llama-70b")
        hit = cache.get("SALES", "p")
        assert hit is not None
        assert hit.response == "answer"
        assert hit.provider == "groq-llama-70b" + CACHE_SUFFIX
        assert hit.provider.endswith(" (cache)")

    def test_entry_expires_at_ttl(self, clock):
        cache = ResultCache(ttl_s=300, clock=clock)
        cache.put("SALES", "p", "answer", "prov")
        clock.advance(299.9)
        assert cache.get("SALES", "p") is not None
        clock.advance(0.1)
        assert cache.get("SALES", "p") is None
        assert cache.size == 0

    def test_put_overwrites_and_refreshes(self, clock):
        cache = ResultCache(ttl_s=10, clock=clock)
        cache.put(None, "p", "old", "a")
        clock.advance(8)
        cache.put(None, "p", "new", "b")
        clock.advance(8)
        hit = cache.get(None, "p")
        assert hit.response == "new"
        assert hit.provider == "b (cache)"

    def test_oldest_entry_evicted_when_full(self, clock):
        cache = ResultCache(max_entries=2, clock=clock)
        cache.put(None, "one", "1", "p")
        cache.put(None, "two", "2", "p")
        cache.get(None, "one")
        cache.put(None, "three", "3", "p")
        assert cache.get(None, "two") is None
        assert cache.get(None, "one") is not None
        assert cache.get(None, "three") is not None

    def test_hit_rate_and_clear(self, clock):
        cache = ResultCache(clock=clock)
        cache.put(None, "p", "r", "x")
        cache.get(None, "p")
        cache.get(None, "other")
        assert cache.hit_rate == 0.5
        cache.clear()
        assert cache.size == 0


class TestResultCacheConcurrency:

    def test_parallel_put_and_get_keep_entries_consistent(self):
        cache = ResultCache(ttl_s=300, max_entries=64)
        errors: list[str] = []
        barrier = threading.Barrier(8)

        def worker(worker_id: int) -> None:
            barrier.wait()
            for i in range(500):
                prompt = f"prompt-{(worker_id * 7 + i) % 200}"
                cache.put("SALES", prompt, f"answer for {prompt}", "prov")
                hit = cache.get("SALES", prompt)
                if hit is not None and hit.response != f"answer for {prompt}":
                    errors.append(f"{prompt}: {hit.response}")
                if cache.size > 64:
                    errors.append(f"size {cache.size}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert 0 < cache.size <= 64
        for n in range(200):
            hit = cache.get("SALES", f"prompt-{n}")
            assert hit is None or hit.response == f"answer for prompt-{n}"


class TestNullCache:

    def test_never_stores(self):
        cache = NullCache()
        cache.put("SALES", "p", "r", "x")
        assert cache.get("SALES", "p") is None
