import asyncio
import json
import pytest
from unittest.mock import MagicMock

from src.querybatch.connectors.httpconnector import TransportResponse
from src.querybatch.errors import BatchRequestFailed, ResponseFormatError, TransportError
from src.querybatch.results.collection import Collection
from src.querybatch.search.multi_search import MultiSearch
from src.querybatch.search.search import Search


def hits_response(*titles):
    return {
        "took": 2,
        "hits": {
            "total": len(titles),
            "hits": [
                {"_id": str(i), "_source": {"title": title, "tags": ["ruby"]}}
                for i, title in enumerate(titles, start=1)
            ],
        },
    }


def envelope(*responses):
    return TransportResponse(status=200, body=json.dumps({"responses": list(responses)}))


# ---------------- Building ----------------

def test_add_same_instance_twice_is_noop(make_config):
    config = make_config()
    s = Search("articles", config=config)
    batch = MultiSearch(config=config)

    batch.add(s)
    batch.add(s)

    assert len(batch) == 1
    assert s in batch


def test_equal_but_distinct_searches_are_both_kept(make_config):
    config = make_config()
    batch = MultiSearch(config=config)

    batch.add(Search("articles", config=config))
    batch.add(Search("articles", config=config))

    assert len(batch) == 2


def test_payload_is_newline_delimited_with_trailing_line(make_config):
    config = make_config()
    first = Search("articles", config=config).query(lambda q: q.string("title:one"))
    second = Search(["comments", "posts"], config=config).size(5)
    batch = MultiSearch([first, second], config=config)

    assert batch.to_payload() == (
        '{"index": "articles"}\n'
        '{"query":{"query_string":{"query":"title:one"}}}\n'
        '{"index": "comments"}\n'
        '{"size":5}\n'
    )


def test_payload_header_for_search_all(make_config):
    config = make_config()
    batch = MultiSearch([Search(config=config)], config=config)

    assert batch.to_payload() == "{}\n{}\n"


def test_url_params_and_curl(make_config):
    config = make_config()
    batch = MultiSearch([Search("articles", config=config)], config=config)

    assert batch.url == "http://localhost:9200/_msearch"
    assert batch.params == ""
    assert batch.to_curl().startswith('curl -X POST "http://localhost:9200/_msearch?pretty=true" -d')

    typed = MultiSearch(config=config, search_type="count")
    assert typed.params == "?search_type=count"


def test_indices(make_config):
    config = make_config()
    batch = MultiSearch(
        [Search("a", config=config), Search(["b", "c"], config=config)], config=config
    )

    assert batch.indices == [["a"], ["b", "c"]]


# ---------------- Execution ----------------

@pytest.mark.asyncio
async def test_results_give_easy_access_to_documents(make_config):
    config = make_config(envelope(hits_response("One")))
    batch = MultiSearch(config=config)
    batch.add(Search("articles-test", config=config).query(lambda q: q.string("title:one")))

    results = await batch.results()

    assert results[0].first().title == "One"
    assert results[0].first().tags[0] == "ruby"

    url, body = config.transport.post.await_args.args
    assert url == "http://localhost:9200/_msearch"
    assert body == batch.to_payload()


@pytest.mark.asyncio
async def test_partial_failure_keeps_positions(make_config):
    config = make_config(
        envelope(
            hits_response("first"),
            {"error": "IndexMissingException[[missing] missing]"},
            hits_response("third", "fourth"),
        )
    )
    batch = MultiSearch(
        [Search(name, config=config) for name in ("a", "missing", "c")], config=config
    )

    results = await batch.results()

    assert len(results) == 3
    assert isinstance(results[0], Collection)
    assert results[0].first().title == "first"
    assert results[1] == []
    assert isinstance(results[2], Collection)
    assert [doc.title for doc in results[2]] == ["third", "fourth"]


@pytest.mark.asyncio
async def test_results_are_memoized(make_config):
    config = make_config(envelope(hits_response("One")))
    batch = MultiSearch([Search("a", config=config)], config=config)

    first = await batch.results()
    second = await batch.results()

    assert first is second
    assert config.transport.post.await_count == 1


@pytest.mark.asyncio
async def test_concurrent_results_share_one_request(make_config):
    config = make_config(envelope(hits_response("One")))
    batch = MultiSearch([Search("a", config=config)], config=config)

    first, second = await asyncio.gather(batch.results(), batch.results())

    assert first is second
    assert config.transport.post.await_count == 1


@pytest.mark.asyncio
async def test_reset_reissues_request(make_config):
    config = make_config(envelope(hits_response("One")))
    batch = MultiSearch([Search("a", config=config)], config=config)

    await batch.results()
    batch.reset()
    await batch.results()

    assert config.transport.post.await_count == 2


@pytest.mark.asyncio
async def test_retries_then_succeeds(make_config):
    config = make_config(
        TransportError("refused"),
        TransportResponse(status=503, body="unavailable"),
        envelope(hits_response("One")),
    )
    batch = MultiSearch([Search("a", config=config)], config=config)

    results = await batch.results()

    assert results[0].first().title == "One"
    assert config.transport.post.await_count == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_batch_failure(make_config):
    config = make_config(TransportResponse(status=500, body="boom"), max_retries=2)
    batch = MultiSearch([Search("a", config=config)], config=config)

    with pytest.raises(BatchRequestFailed) as exc_info:
        await batch.results()

    assert exc_info.value.body == "boom"
    assert "_msearch" in exc_info.value.curl
    assert config.transport.post.await_count == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_batch_failure_when_asked_to_raise(make_config):
    config = make_config(TransportError("refused"), max_retries=1, raise_on_failure=True)
    batch = MultiSearch([Search("a", config=config)], config=config)

    with pytest.raises(BatchRequestFailed) as exc_info:
        await batch.perform()

    assert isinstance(exc_info.value.__cause__, TransportError)


@pytest.mark.asyncio
async def test_missing_responses_key_is_fatal(make_config, ok):
    config = make_config(ok('{"took": 1}'))
    batch = MultiSearch([Search("a", config=config)], config=config)

    with pytest.raises(ResponseFormatError):
        await batch.perform()


@pytest.mark.asyncio
async def test_length_mismatch_is_fatal(make_config):
    config = make_config(envelope(hits_response("One")))
    batch = MultiSearch(
        [Search("a", config=config), Search("b", config=config)], config=config
    )

    with pytest.raises(ResponseFormatError):
        await batch.perform()


@pytest.mark.asyncio
async def test_logger_called_once_on_success_and_failure(make_config):
    search_logger = MagicMock()
    search_logger.level = "info"

    config = make_config(envelope(hits_response("One")), logger=search_logger)
    await MultiSearch([Search("a", config=config)], config=config).perform()

    search_logger.log_request.assert_called_once()
    action, indices, curl = search_logger.log_request.call_args.args
    assert action == "_msearch"
    assert indices == [["a"]]
    search_logger.log_response.assert_called_once_with(200, "N/A", "")

    search_logger.reset_mock()
    config = make_config(TransportError("refused"), logger=search_logger, max_retries=0)
    with pytest.raises(BatchRequestFailed):
        await MultiSearch([Search("a", config=config)], config=config).perform()

    search_logger.log_response.assert_called_once_with("N/A", "N/A", "")


@pytest.mark.asyncio
async def test_foreign_transport_exception_becomes_batch_failure(make_config):
    config = make_config(ConnectionRefusedError("refused"), max_retries=2)
    batch = MultiSearch([Search("a", config=config)], config=config)

    with pytest.raises(BatchRequestFailed) as exc_info:
        await batch.perform()

    assert "refused" in exc_info.value.body
    assert config.transport.post.await_count == 3

    config = make_config(
        ConnectionRefusedError("refused"), max_retries=0, raise_on_failure=True
    )
    batch = MultiSearch([Search("a", config=config)], config=config)

    with pytest.raises(BatchRequestFailed) as exc_info:
        await batch.perform()

    assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)


@pytest.mark.asyncio
async def test_empty_batch_skips_request(make_config):
    config = make_config()
    batch = MultiSearch(config=config)

    assert await batch.results() == []
    assert config.transport.post.await_count == 0
