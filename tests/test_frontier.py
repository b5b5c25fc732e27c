# File: tests/test_frontier.py
import pytest

from site_harvest.crawler.frontier import EnqueueStatus, Frontier
from site_harvest.crawler.globs import GlobFilter


def make_frontier(state, *, max_depth=1, max_pages=10, include=("https://example.com/**",), exclude=()):
    return Frontier(
        state,
        GlobFilter.compile(include, exclude),
        max_depth=max_depth,
        max_pages=max_pages,
    )


def test_seeds_start_at_depth_zero_and_skip_globs(state):
    frontier = make_frontier(state)
    results = frontier.seed(["https://example.com/", "https://other.org/start"])
    assert [r.status for r in results] == [EnqueueStatus.ENQUEUED, EnqueueStatus.ENQUEUED]
    assert all(r.request.depth == 0 for r in results)
    assert frontier.qsize() == 2


def test_duplicate_and_invalid_seeds(state):
    frontier = make_frontier(state)
    results = frontier.seed(["https://example.com/", "https://example.com/#top", "ftp://example.com/x"])
    assert [r.status for r in results] == [
        EnqueueStatus.ENQUEUED,
        EnqueueStatus.DUPLICATE,
        EnqueueStatus.INVALID_URL,
    ]
    assert frontier.qsize() == 1


def test_link_depth_is_parent_plus_one(state):
    frontier = make_frontier(state, max_depth=2)
    result = frontier.consider_link("https://example.com/a", parent_depth=1)
    assert result.accepted
    assert result.request.depth == 2
    assert result.request.original_url == "https://example.com/a"


def test_link_beyond_depth_budget(state):
    frontier = make_frontier(state, max_depth=1)
    result = frontier.consider_link("https://example.com/a", parent_depth=1)
    assert result.status is EnqueueStatus.DEPTH_EXCEEDED
    assert frontier.qsize() == 0


def test_zero_depth_budget_follows_nothing(state):
    frontier = make_frontier(state, max_depth=0)
    assert frontier.consider_link("https://example.com/a", 0).status is EnqueueStatus.DEPTH_EXCEEDED


def test_glob_filtered_links(state):
    frontier = make_frontier(state, exclude=("**/*.zip",))
    assert frontier.consider_link("https://other.org/a", 0).status is EnqueueStatus.FILTERED
    assert frontier.consider_link("https://example.com/a.zip", 0).status is EnqueueStatus.FILTERED
    assert frontier.consider_link("https://example.com/a.html", 0).accepted


def test_invalid_link(state):
    frontier = make_frontier(state)
    assert frontier.consider_link("mailto:someone@example.com", 0).status is EnqueueStatus.INVALID_URL


def test_budget_exhausted_stops_enqueueing(state):
    frontier = make_frontier(state, max_pages=1)
    state.try_claim("https://example.com/", 1)
    result = frontier.consider_link("https://example.com/a", 0)
    assert result.status is EnqueueStatus.BUDGET_EXHAUSTED
    assert frontier.qsize() == 0


def test_duplicate_link_after_normalization(state):
    frontier = make_frontier(state)
    assert frontier.consider_link("https://example.com/a?b=2&a=1", 0).accepted
    second = frontier.consider_link("https://EXAMPLE.com/a?a=1&b=2#frag", 0)
    assert second.status is EnqueueStatus.DUPLICATE


def test_consider_links_and_snapshot(state):
    frontier = make_frontier(state)
    results = frontier.consider_links(
        ["https://example.com/a", "https://example.com/a", "https://other.org/"], 0
    )
    assert [r.status for r in results] == [
        EnqueueStatus.ENQUEUED,
        EnqueueStatus.DUPLICATE,
        EnqueueStatus.FILTERED,
    ]
    snap = frontier.snapshot()
    assert snap["enqueued"] == 1
    assert snap["duplicate"] == 1
    assert snap["filtered"] == 1
    assert snap["enqueued_urls"] == 1


@pytest.mark.asyncio()
async def test_retry_requeues_same_request(state):
    frontier = make_frontier(state)
    frontier.seed(["https://example.com/"])
    request = await frontier.get()
    request.loaded_url = "https://example.com/home"
    frontier.retry(request)
    frontier.task_done()

    again = await frontier.get()
    assert again is request
    assert again.retry_count == 1
    assert again.loaded_url is None
    frontier.task_done()
    assert frontier.snapshot()["retried"] == 1


@pytest.mark.parametrize("kwargs", [{"max_depth": -1}, {"max_pages": 0}])
def test_invalid_limits(state, kwargs):
    with pytest.raises(ValueError):
        make_frontier(state, **kwargs)
