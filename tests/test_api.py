"""
End-to-end scenarios through the HTTP gateway
"""
API = "/api/v1"


async def test_health(client):
    resp = await client.get(f"{API}/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_protected_route_requires_token(client):
    resp = await client.post(f"{API}/posts", json={"content": "hi"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "authorization token is not provided", "code": "unauthenticated"}

    resp = await client.post(f"{API}/posts", json={"content": "hi"}, headers={"Authorization": "Basic abc"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "invalid authorization format"


async def test_request_id_is_echoed(client):
    resp = await client.get(f"{API}/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["x-request-id"] == "req-123"


async def test_like_unlike_scenario(client, make_user, auth_header):
    alice = await make_user(name="Alice")
    bob = await make_user(name="Bob")

    resp = await client.post(f"{API}/posts", json={"content": "hello", "visibility": "public"}, headers=auth_header(alice.id))
    assert resp.status_code == 201
    post = resp.json()
    assert post["author_name"] == "Alice"
    assert post["created_at"].endswith("Z")

    resp = await client.post(f"{API}/posts/{post['id']}/like", headers=auth_header(bob.id))
    assert resp.json() == {"success": True, "likes_count": 1}

    resp = await client.post(f"{API}/posts/{post['id']}/like", headers=auth_header(bob.id))
    assert resp.status_code == 409

    resp = await client.get(f"{API}/posts/{post['id']}", headers=auth_header(bob.id))
    assert resp.json()["is_liked"] is True
    assert resp.json()["likes_count"] == 1

    resp = await client.delete(f"{API}/posts/{post['id']}/like", headers=auth_header(bob.id))
    assert resp.json() == {"success": True, "likes_count": 0}

    resp = await client.delete(f"{API}/posts/{post['id']}/like", headers=auth_header(bob.id))
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


async def test_private_post_visibility(client, make_user, auth_header):
    alice = await make_user()
    bob = await make_user()
    carol = await make_user()

    resp = await client.post(f"{API}/posts", json={"content": "secret", "visibility": "private"}, headers=auth_header(alice.id))
    post_id = resp.json()["id"]

    resp = await client.get(f"{API}/posts/{post_id}")
    assert resp.status_code == 403
    resp = await client.get(f"{API}/posts/{post_id}", headers=auth_header(carol.id))
    assert resp.status_code == 403

    # friend ids carried in the token
    resp = await client.get(f"{API}/posts/{post_id}", headers=auth_header(bob.id, friend_ids=[alice.id]))
    assert resp.status_code == 200

    # an invalid token on an optional-auth route reads as anonymous
    resp = await client.get(f"{API}/posts/{post_id}", headers={"Authorization": "Bearer junk"})
    assert resp.status_code == 403


async def test_friendship_enables_private_feed(client, make_user, auth_header):
    alice = await make_user()
    bob = await make_user()

    await client.post(f"{API}/posts", json={"content": "for friends", "visibility": "private"}, headers=auth_header(alice.id))

    resp = await client.get(f"{API}/posts", headers=auth_header(bob.id))
    assert resp.json()["total_count"] == 0

    resp = await client.post(f"{API}/friends/requests", json={"receiver_id": bob.id}, headers=auth_header(alice.id))
    assert resp.status_code == 201
    request_id = resp.json()["id"]

    resp = await client.get(f"{API}/friends/requests", params={"status": "pending"}, headers=auth_header(bob.id))
    assert resp.json()["total_count"] == 1

    resp = await client.put(f"{API}/friends/requests/{request_id}/accept", headers=auth_header(bob.id))
    assert resp.status_code == 200
    assert resp.json()["status"] == "accepted"

    # friend ids are loaded from storage when the token has none
    resp = await client.get(f"{API}/posts", headers=auth_header(bob.id))
    body = resp.json()
    assert body["total_count"] == 1
    assert body["items"][0]["content"] == "for friends"

    resp = await client.get(f"{API}/friends/status/{alice.id}", headers=auth_header(bob.id))
    assert resp.json() == {"status": "friends", "request_id": ""}

    resp = await client.delete(f"{API}/friends/{bob.id}", headers=auth_header(alice.id))
    assert resp.status_code == 200
    resp = await client.get(f"{API}/friends/status/{bob.id}", headers=auth_header(alice.id))
    assert resp.json()["status"] == "none"


async def test_list_posts_pagination(client, make_user, auth_header):
    alice = await make_user()
    for i in range(25):
        await client.post(f"{API}/posts", json={"content": f"post {i}"}, headers=auth_header(alice.id))

    resp = await client.get(f"{API}/posts", params={"page": 3, "limit": 10})
    body = resp.json()
    assert body["total_count"] == 25
    assert body["total_pages"] == 3
    assert body["page"] == 3
    assert len(body["items"]) == 5

    resp = await client.get(f"{API}/posts", params={"page": 0, "limit": 0})
    body = resp.json()
    assert body["page"] == 1
    assert len(body["items"]) == 10


async def test_comments_over_http(client, make_user, auth_header):
    alice = await make_user()
    bob = await make_user(name="Bob")
    resp = await client.post(f"{API}/posts", json={"content": "discuss"}, headers=auth_header(alice.id))
    post_id = resp.json()["id"]

    resp = await client.post(f"{API}/posts/{post_id}/comments", json={"content": "me first"}, headers=auth_header(bob.id))
    assert resp.status_code == 201
    comment_id = resp.json()["id"]
    assert resp.json()["author_name"] == "Bob"

    resp = await client.get(f"{API}/posts/{post_id}/comments")
    assert resp.json()["total_count"] == 1

    resp = await client.delete(f"{API}/posts/{post_id}/comments/{comment_id}", headers=auth_header(alice.id))
    assert resp.status_code == 200
    resp = await client.get(f"{API}/posts/{post_id}")
    assert resp.json()["comments_count"] == 0


async def test_group_scenario(client, make_user, auth_header):
    carl = await make_user(name="Carl")
    mia = await make_user(name="Mia")

    resp = await client.post(f"{API}/groups", json={"name": "Climbers"}, headers=auth_header(carl.id))
    assert resp.status_code == 201
    group_id = resp.json()["id"]

    resp = await client.get(f"{API}/groups/{group_id}", headers=auth_header(carl.id))
    body = resp.json()
    assert body["members_count"] == 1
    assert body["is_member"] is True
    assert body["creator_name"] == "Carl"

    resp = await client.delete(f"{API}/groups/{group_id}/members", headers=auth_header(carl.id))
    assert resp.status_code == 403
    assert resp.json()["error"] == "creator cannot leave the group"

    resp = await client.get(f"{API}/groups/{group_id}/posts")
    assert resp.status_code == 403

    resp = await client.post(f"{API}/groups/{group_id}/members", headers=auth_header(mia.id))
    assert resp.json() == {"success": True, "members_count": 2}

    resp = await client.post(
        f"{API}/groups/{group_id}/posts", json={"content": "first ascent"}, headers=auth_header(mia.id)
    )
    assert resp.status_code == 201

    resp = await client.get(f"{API}/groups/{group_id}/posts", headers=auth_header(carl.id))
    body = resp.json()
    assert body["total_count"] == 1
    assert body["items"][0]["author_name"] == "Mia"

    resp = await client.get(f"{API}/groups/{group_id}/members")
    assert resp.json()["total_count"] == 2

    resp = await client.get(f"{API}/groups", params={"query": "climb"})
    assert resp.json()["total_count"] == 1

    resp = await client.put(f"{API}/groups/{group_id}", json={"name": "Boulderers"}, headers=auth_header(mia.id))
    assert resp.status_code == 403


async def test_profile_and_signout(client, auth_header):
    resp = await client.post(f"{API}/users/register", json={"provider": "google", "token": "google-token"})
    assert resp.status_code == 201
    body = resp.json()
    headers = {"Authorization": f"Bearer {body['access_token']}"}

    resp = await client.get(f"{API}/users/me", headers=headers)
    assert resp.json()["email"] == "ann@example.com"

    resp = await client.put(f"{API}/users/me", json={"name": "Annie"}, headers=headers)
    assert resp.json()["name"] == "Annie"

    resp = await client.post(f"{API}/users/register", json={"provider": "google", "token": "google-token"})
    assert resp.status_code == 409

    resp = await client.post(f"{API}/auth/signout", headers=headers)
    assert resp.json() == {"success": True}

    resp = await client.get(f"{API}/users/me", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["error"] == "token revoked"


async def test_oauth_round_trip(client):
    resp = await client.get(f"{API}/auth/google")
    state = resp.json()["state"]

    resp = await client.get(f"{API}/auth/google/callback", params={"state": state, "code": "good-code"})
    assert resp.status_code == 200
    assert resp.json()["access_token"]

    resp = await client.get(f"{API}/auth/google/callback", params={"state": state, "code": "good-code"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid state token"


async def test_malformed_paging_degrades_to_defaults(client, make_user, auth_header):
    alice = await make_user()
    await client.post(f"{API}/posts", json={"content": "one"}, headers=auth_header(alice.id))

    resp = await client.get(f"{API}/posts?page=x&limit=abc")
    assert resp.status_code == 200
    body = resp.json()
    assert body["page"] == 1
    assert body["total_count"] == 1
    assert body["total_pages"] == 1
    assert len(body["items"]) == 1

    resp = await client.get(f"{API}/groups?page=-4&limit=1000")
    assert resp.status_code == 200
    assert resp.json()["page"] == 1

    resp = await client.get(f"{API}/friends?page=&limit=zz", headers=auth_header(alice.id))
    assert resp.status_code == 200
    assert resp.json()["items"] == []
