from conftest import ALICE, BOB, auth


def register(client, token):
    # any authenticated call mirrors the user locally
    assert client.get("/friends", headers=auth(token)).status_code == 200


def send(client, email, token="alice-token"):
    return client.post("/friends/requests", json={"friendEmail": email}, headers=auth(token))


def test_friend_request_accept_flow(client):
    register(client, "bob-token")

    r = send(client, "Bob@Example.com")
    assert r.status_code == 200, r.text
    request = r.json()["friendRequest"]
    assert request["userId"] == ALICE.id
    assert request["friendId"] == BOB.id
    assert request["status"] == "pending"

    sent = client.get("/friends", headers=auth()).json()
    assert sent["totalSentRequests"] == 1
    assert sent["sentRequests"][0]["email"] == BOB.email

    incoming = client.get("/friends", headers=auth("bob-token")).json()
    assert incoming["totalPendingRequests"] == 1
    assert incoming["pendingRequests"][0]["id"] == ALICE.id

    r = client.post(
        f"/friends/requests/{request['id']}/respond",
        json={"action": "accept"},
        headers=auth("bob-token"),
    )
    assert r.status_code == 200
    assert r.json() == {"message": "Friend request accepted successfully", "status": "accepted"}

    friends = client.get("/friends", headers=auth()).json()
    assert friends["totalFriends"] == 1
    assert friends["friends"][0]["relationshipId"] == request["id"]

    stats = client.get("/stats", headers=auth()).json()
    assert stats["friends"] == {"accepted": 1, "pendingRequests": 0, "sentRequests": 0, "total": 1}


def test_reject(client):
    register(client, "bob-token")
    request_id = send(client, BOB.email).json()["friendRequest"]["id"]

    r = client.post(
        f"/friends/requests/{request_id}/respond",
        json={"action": "reject"},
        headers=auth("bob-token"),
    )
    assert r.json()["status"] == "rejected"
    assert client.get("/friends", headers=auth()).json()["totalSentRequests"] == 0

    # a rejected request can be sent again
    assert send(client, BOB.email).status_code == 200


def test_duplicate_and_existing_friendships_conflict(client):
    register(client, "bob-token")
    request_id = send(client, BOB.email).json()["friendRequest"]["id"]

    r = send(client, BOB.email)
    assert r.status_code == 409
    assert r.json()["error"] == "Friend request already pending"

    # the reverse direction is the same relationship
    assert send(client, ALICE.email, token="bob-token").status_code == 409

    client.post(f"/friends/requests/{request_id}/respond", json={"action": "accept"}, headers=auth("bob-token"))
    r = send(client, BOB.email)
    assert r.status_code == 409
    assert r.json()["error"] == "Already friends with this user"


def test_unknown_email_and_self(client):
    r = send(client, "nobody@example.com")
    assert r.status_code == 404

    r = send(client, ALICE.email)
    assert r.status_code == 400
    assert r.json()["error"] == "Cannot send friend request to yourself"


def test_only_recipient_can_respond(client):
    register(client, "bob-token")
    request_id = send(client, BOB.email).json()["friendRequest"]["id"]

    r = client.post(f"/friends/requests/{request_id}/respond", json={"action": "accept"}, headers=auth())
    assert r.status_code == 404

    r = client.post(f"/friends/requests/{request_id}/respond", json={"action": "maybe"}, headers=auth("bob-token"))
    assert r.status_code == 400
