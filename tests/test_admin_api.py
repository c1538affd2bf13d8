from conftest import sign_in, upload_jpeg, wait_for_status


def test_stats_are_admin_only(client, monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", "curator@example.com, boss@example.com")

    sign_in(client, "artist@example.com")
    artwork = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, artwork["id"])
    assert client.get("/api/admin/stats").status_code == 403

    me = sign_in(client, "curator@example.com")
    assert me["isAdmin"] is True
    r = client.get("/api/admin/stats")

    assert r.status_code == 200
    stats = r.json()
    assert stats["userStats"]["totalUsers"] == 2
    assert stats["artworkStats"]["totalArtworks"] == 1
    assert stats["artworkStats"]["analyzedArtworks"] == 1
    assert stats["artworkStats"]["avgPrice"] == 30000
    by_email = {row["email"]: row for row in stats["userAnalytics"]}
    assert by_email["artist@example.com"]["artworkCount"] == 1
    assert by_email["curator@example.com"]["artworkCount"] == 0
    assert stats["analysisQueue"]["in_flight"] == 0
