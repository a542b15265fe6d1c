from nearby_service.response import data_response, error_response, list_response


def test_list_response_shape() -> None:
    payload = list_response([{"id": "vet-1"}, {"id": "vet-2"}])
    assert payload == {"data": [{"id": "vet-1"}, {"id": "vet-2"}], "count": 2}


def test_empty_list_response_shape() -> None:
    assert list_response([]) == {"data": [], "count": 0}


def test_data_and_error_response_shapes() -> None:
    assert data_response({"status": "ok"}) == {"data": {"status": "ok"}}
    assert error_response("latitude and longitude are required") == {"error": "latitude and longitude are required"}
