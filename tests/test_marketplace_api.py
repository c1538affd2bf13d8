from conftest import sign_in, upload_jpeg, wait_for_status


def test_listing_defaults_to_suggested_price_and_can_be_withdrawn(client):
    sign_in(client)
    artwork = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, artwork["id"])

    listed = client.post("/api/marketplace/listings", json={"artworkId": artwork["id"], "platform": "etsy"})
    assert listed.status_code == 200
    body = listed.json()
    assert body["marketplaceListed"] is True
    assert body["listingPlatform"] == "etsy"
    assert body["listingStatus"] == "active"
    assert body["listingPrice"] == 30000

    assert [a["id"] for a in client.get("/api/marketplace/listings").json()] == [artwork["id"]]

    withdrawn = client.delete(f"/api/marketplace/listings/{artwork['id']}")
    assert withdrawn.status_code == 200
    assert withdrawn.json()["listingStatus"] == "withdrawn"
    assert client.get("/api/marketplace/listings").json() == []
    assert client.delete(f"/api/marketplace/listings/{artwork['id']}").status_code == 404


def test_listing_with_explicit_price_and_validation(client):
    sign_in(client)
    artwork = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, artwork["id"])

    listed = client.post(
        "/api/marketplace/listings", json={"artworkId": artwork["id"], "platform": "ebay", "price": 9900}
    )
    assert listed.json()["listingPrice"] == 9900

    assert client.post("/api/marketplace/listings", json={"artworkId": artwork["id"], "platform": " "}).status_code == 400
    negative = client.post(
        "/api/marketplace/listings", json={"artworkId": artwork["id"], "platform": "ebay", "price": -1}
    )
    assert negative.status_code == 400
    huge = client.post(
        "/api/marketplace/listings", json={"artworkId": artwork["id"], "platform": "ebay", "price": 10**22}
    )
    assert huge.status_code == 400


def test_cannot_list_someone_elses_artwork(client):
    sign_in(client, "owner@example.com")
    artwork = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, artwork["id"])

    sign_in(client, "other@example.com")
    r = client.post("/api/marketplace/listings", json={"artworkId": artwork["id"], "platform": "etsy"})
    assert r.status_code == 404
