from app.utils.conditional_get import ConditionalCacheNegotiator

PAYLOAD = {"items": [{"id": 1, "title": "Standup"}], "pagination": {"page": 1}}


def test_fingerprint_is_stable_across_key_order():
    reordered = {"pagination": {"page": 1}, "items": [{"title": "Standup", "id": 1}]}

    assert ConditionalCacheNegotiator.fingerprint(PAYLOAD) == ConditionalCacheNegotiator.fingerprint(
        reordered
    )


def test_fingerprint_changes_with_content():
    changed = {**PAYLOAD, "pagination": {"page": 2}}

    assert ConditionalCacheNegotiator.fingerprint(PAYLOAD) != ConditionalCacheNegotiator.fingerprint(
        changed
    )


def test_fingerprint_is_quoted_sha256():
    tag = ConditionalCacheNegotiator.fingerprint(PAYLOAD)

    assert tag.startswith('"') and tag.endswith('"')
    assert len(tag) == 66


def test_is_fresh_variants():
    tag = ConditionalCacheNegotiator.fingerprint(PAYLOAD)
    bare = tag.strip('"')

    assert ConditionalCacheNegotiator.is_fresh(tag, tag)
    assert ConditionalCacheNegotiator.is_fresh(tag, bare)
    assert ConditionalCacheNegotiator.is_fresh(tag, f"W/{tag}")
    assert ConditionalCacheNegotiator.is_fresh(tag, f'"other", {tag}')
    assert ConditionalCacheNegotiator.is_fresh(tag, "*")
    assert not ConditionalCacheNegotiator.is_fresh(tag, None)
    assert not ConditionalCacheNegotiator.is_fresh(tag, '"other"')


def test_negotiate_returns_body_and_tag():
    negotiated = ConditionalCacheNegotiator().negotiate(PAYLOAD)

    assert negotiated.status_code == 200
    assert negotiated.body == PAYLOAD
    assert negotiated.headers["ETag"] == ConditionalCacheNegotiator.fingerprint(PAYLOAD)
    assert "Cache-Control" not in negotiated.headers


def test_negotiate_not_modified():
    negotiator = ConditionalCacheNegotiator(max_age=300)
    tag = negotiator.fingerprint(PAYLOAD)

    negotiated = negotiator.negotiate(PAYLOAD, tag)
    response = negotiated.to_response()

    assert negotiated.not_modified
    assert negotiated.body is None
    assert response.status_code == 304
    assert response.body == b""
    assert response.headers["etag"] == tag
    assert "s-maxage=300" in response.headers["cache-control"]


def test_negotiate_disabled_never_tags():
    negotiated = ConditionalCacheNegotiator(enabled=False).negotiate(PAYLOAD, "*")

    assert negotiated.status_code == 200
    assert "ETag" not in negotiated.headers
