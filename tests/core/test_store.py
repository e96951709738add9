import pytest
import requests
from unittest.mock import MagicMock

from daytally.api_service.core.store import FirebaseStore, MemoryStore, StoreError
from daytally.shared.paths import activity_path, day_path, join_path


def test_paths():
    assert day_path("u1", "2024-01-01") == "users/u1/days/2024-01-01/activities"
    assert activity_path("u1", "2024-01-01", "17") == "users/u1/days/2024-01-01/activities/17"


@pytest.mark.parametrize("segment", ["", "a/b", "a.b", "$x", "#1", "[0]"])
def test_join_path_rejects_bad_segments(segment):
    with pytest.raises(ValueError):
        join_path("users", segment)


def test_memory_read_missing():
    snapshot = MemoryStore().read("users/u1")
    assert snapshot.exists() is False
    assert snapshot.value() is None


def test_memory_write_replaces_whole_value():
    store = MemoryStore()
    store.write("a/b", {"x": 1, "y": 2})
    store.write("a/b", {"x": 3})
    assert store.read("a/b").value() == {"x": 3}
    assert store.read("a").value() == {"b": {"x": 3}}


def test_memory_read_returns_copies():
    store = MemoryStore()
    store.write("a/b", {"x": 1})
    store.read("a/b").value()["x"] = 99
    assert store.read("a/b").value() == {"x": 1}


def test_memory_delete_prunes_empty_parents():
    store = MemoryStore()
    store.write("a/b/c", 1)
    store.write("a/d", 2)
    store.delete("a/b/c")
    assert store.read("a/b").exists() is False
    assert store.read("a").value() == {"d": 2}


def test_memory_delete_keeps_siblings():
    store = MemoryStore()
    store.write("a/b/c", 1)
    store.write("a/b/e", 2)
    store.delete("a/b/c")
    assert store.read("a/b").value() == {"e": 2}


def test_memory_delete_missing_is_a_no_op():
    store = MemoryStore()
    store.write("a/b", 1)
    store.delete("a/x/y")
    assert store.read("a").value() == {"b": 1}


def response(status=200, body=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.text = str(body)
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resp)
    return resp


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def firebase(http):
    return FirebaseStore("https://example.firebaseio.com/", timeout=5, session=http)


def test_firebase_read(firebase, http):
    http.request.return_value = response(body={"17": {"name": "Gym"}})
    snapshot = firebase.read("users/u1/days/2024-01-01/activities", token="tok")

    assert snapshot.value() == {"17": {"name": "Gym"}}
    http.request.assert_called_once_with(
        "GET",
        "https://example.firebaseio.com/users/u1/days/2024-01-01/activities.json",
        params={"auth": "tok"},
        timeout=5,
    )


def test_firebase_read_null_is_absent(firebase, http):
    http.request.return_value = response(body=None)
    assert firebase.read("users/u1").exists() is False


def test_firebase_write_and_delete(firebase, http):
    http.request.return_value = response(body={"name": "Gym"})
    firebase.write("users/u1/x", {"name": "Gym"}, token="tok")
    firebase.delete("users/u1/x", token="tok")

    write_call, delete_call = http.request.call_args_list
    assert write_call.args[0] == "PUT"
    assert write_call.kwargs["json"] == {"name": "Gym"}
    assert delete_call.args[0] == "DELETE"


def test_firebase_http_error_becomes_store_error(firebase, http):
    http.request.return_value = response(status=401, body={"error": "Permission denied"})
    with pytest.raises(StoreError):
        firebase.read("users/u1")


def test_firebase_connection_error_becomes_store_error(firebase, http):
    http.request.side_effect = requests.exceptions.ConnectionError("down")
    with pytest.raises(StoreError):
        firebase.write("users/u1/x", {"a": 1})


def test_firebase_requires_url():
    with pytest.raises(ValueError):
        FirebaseStore("")


def test_firebase_ping_reachable(firebase, http):
    http.get.return_value = response(status=200, body={"users": True})
    assert firebase.ping() is True
    assert http.get.call_args.kwargs["params"] == {"shallow": "true"}


@pytest.mark.parametrize("status", [401, 404, 500])
def test_firebase_ping_error_status_is_unreachable(firebase, http, status):
    http.get.return_value = response(status=status, body={"error": "Permission denied"})
    assert firebase.ping() is False


def test_firebase_ping_connection_error_is_unreachable(firebase, http):
    http.get.side_effect = requests.exceptions.ConnectionError("down")
    assert firebase.ping() is False
