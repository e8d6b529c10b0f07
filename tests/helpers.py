from utils.constants import SUMMARIZE_PROMPT, EXAMPLE_QUESTION, EXAMPLE_ANSWER


def part_texts(content):
    """Texts of a wire-shaped turn."""
    return [part["text"] for part in content["parts"]]


def assert_seed_layout(contents):
    """
    Assert the first four wire turns are the seed history:
    file introductions + summarize prompt, model summary, example question, example answer.
    """
    assert [c["role"] for c in contents[:4]] == ["user", "model", "user", "model"]
    assert part_texts(contents[0])[-1] == SUMMARIZE_PROMPT
    assert part_texts(contents[2]) == [EXAMPLE_QUESTION]
    assert part_texts(contents[3]) == [EXAMPLE_ANSWER]


def assert_error_body(response, status_code, fragment=None):
    """Assert a uniform error response, optionally containing a fragment in error or details."""
    assert response.status_code == status_code
    body = response.json()
    assert "error" in body
    if fragment is not None:
        assert fragment in body["error"] or fragment in body.get("details", ""), body
