import json
import logging

from pintdiary.obs.logging import JSONLogFormatter, bind_context, reset_context


def _record(**extra) -> logging.LogRecord:
	record = logging.LogRecord("pintdiary.test", logging.INFO, __file__, 1, "Pint logged", None, None)
	for key, value in extra.items():
		setattr(record, key, value)
	return record


def test_formatter_redacts_location_and_notes():
	payload = json.loads(
		JSONLogFormatter().format(_record(pint_id="p1", lat=53.3, lng=-6.2, note="with my ex", email="a@b.c"))
	)
	assert payload["msg"] == "Pint logged"
	assert payload["pint_id"] == "p1"
	for key in ("lat", "lng", "note", "email"):
		assert payload[key] == "[redacted]"


def test_formatter_includes_bound_request_context():
	tokens = bind_context(request_id="req-1", route="/pints", user_id="alice")
	try:
		payload = json.loads(JSONLogFormatter().format(_record()))
	finally:
		reset_context(tokens)
	assert payload["request_id"] == "req-1"
	assert payload["route"] == "/pints"
	assert payload["user_id"] == "alice"


def test_formatter_truncates_long_collections():
	payload = json.loads(JSONLogFormatter().format(_record(badges=[f"b{idx}" for idx in range(15)])))
	assert len(payload["badges"]) == 11
	assert payload["badges"][-1] == "…"


def test_formatter_keeps_fields_that_only_resemble_sensitive_words():
	payload = json.loads(JSONLogFormatter().format(_record(latency_ms=12.5, pub_name="The Stag", place_id="abc")))
	assert payload["latency_ms"] == 12.5
	assert payload["pub_name"] == "The Stag"
	assert payload["place_id"] == "abc"
