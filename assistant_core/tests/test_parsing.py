from assistant_core.intent.parsing import ParseFailure, ParseOk, extract_json_object


def test_extracts_object_wrapped_in_prose():
    res = extract_json_object('Here is the result: {"intent":"pricing","confidence":0.9} thanks')
    assert isinstance(res, ParseOk)
    assert res.value == {"intent": "pricing", "confidence": 0.9}


def test_markdown_fence_and_nested_object():
    text = 'Sure!\n```json\n{"intent": "marketing", "meta": {"lang": "hi"}, "confidence": 0.8}\n```'
    res = extract_json_object(text)
    assert isinstance(res, ParseOk)
    assert res.value["meta"] == {"lang": "hi"}


def test_braces_inside_strings_do_not_break_balance():
    text = 'x {"intent": "conversation", "suggestion": "use } and { freely", "confidence": 0.6} y'
    res = extract_json_object(text)
    assert isinstance(res, ParseOk)
    assert res.value["suggestion"] == "use } and { freely"


def test_first_balanced_object_wins():
    res = extract_json_object('{"a": 1} and then {"b": 2}')
    assert isinstance(res, ParseOk)
    assert res.value == {"a": 1}


def test_skips_unparseable_candidate():
    res = extract_json_object('{not json} but {"intent": "pricing", "confidence": 0.75}')
    assert isinstance(res, ParseOk)
    assert res.value["intent"] == "pricing"


def test_unclosed_brace_before_real_object():
    res = extract_json_object('oops { {"intent": "pricing", "confidence": 0.9}')
    assert isinstance(res, ParseOk)
    assert res.value["confidence"] == 0.9


def test_no_object_is_failure():
    assert isinstance(extract_json_object("I think this is about pricing."), ParseFailure)
    assert isinstance(extract_json_object(""), ParseFailure)
    assert isinstance(extract_json_object('{"intent": "pricing"'), ParseFailure)
