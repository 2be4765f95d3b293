from aggregator.cache import SourceCache
from fakes import make_item


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestSourceCache:
    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = SourceCache(60, clock=clock)
        cache.set("openai", [make_item()])
        clock.now += 59
        assert cache.get("openai") == [make_item()]

    def test_expired(self):
        clock = FakeClock()
        cache = SourceCache(60, clock=clock)
        cache.set("openai", [make_item()])
        clock.now += 60
        assert cache.get("openai") is None

    def test_shorter_max_age_wins(self):
        clock = FakeClock()
        cache = SourceCache(60, clock=clock)
        cache.set("openai", [make_item()], max_age=10)
        clock.now += 9
        assert cache.get("openai") is not None
        clock.now += 1
        assert cache.get("openai") is None

    def test_longer_max_age_capped_by_ttl(self):
        clock = FakeClock()
        cache = SourceCache(60, clock=clock)
        cache.set("openai", [make_item()], max_age=900)
        clock.now += 60
        assert cache.get("openai") is None

    def test_miss(self):
        assert SourceCache(60).get("nvidia") is None

    def test_disabled_when_ttl_zero(self):
        cache = SourceCache(0)
        cache.set("openai", [make_item()])
        assert cache.get("openai") is None

    def test_empty_list_is_cached(self):
        cache = SourceCache(60)
        cache.set("openai", [])
        assert cache.get("openai") == []

    def test_returns_copies(self):
        cache = SourceCache(60)
        cache.set("openai", [make_item()])
        cache.get("openai").clear()
        assert len(cache.get("openai")) == 1

    def test_clear(self):
        cache = SourceCache(60)
        cache.set("openai", [make_item()])
        cache.clear()
        assert cache.get("openai") is None
