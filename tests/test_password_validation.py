"""
Test: Sign-up password strength rules and endpoint.
"""
from scholarquest.services.password_validation import validate_password


class TestValidatePassword:
    def test_empty(self):
        result = validate_password("")
        assert not result["is_valid"]
        assert result["strength"] == "weak"
        assert len(result["errors"]) == 5

    def test_fair(self):
        # length, lowercase, number
        result = validate_password("abcdefg1")
        assert result["strength"] == "fair"
        assert result["errors"] == ["One uppercase letter", "One special character (!@#$%^&*)"]

    def test_good_with_four(self):
        assert validate_password("Abcdefg1")["strength"] == "good"

    def test_all_met_but_short_is_good(self):
        result = validate_password("Abcdef1!")
        assert result["is_valid"]
        assert result["strength"] == "good"

    def test_strong(self):
        result = validate_password("Abcdefghij1!")
        assert result["is_valid"]
        assert result["strength"] == "strong"

    def test_requirements_listed_in_order(self):
        ids = [r["id"] for r in validate_password("x")["requirements"]]
        assert ids == ["length", "uppercase", "lowercase", "number", "special"]

    def test_none(self):
        assert validate_password(None)["strength"] == "weak"


class TestPasswordEndpoint:
    def test_public_endpoint(self, client):
        resp = client.post('/api/auth/password-strength', json={"password": "Abcdefghij1!"})
        assert resp.status_code == 200
        assert resp.get_json()["strength"] == "strong"

    def test_missing_password(self, client):
        assert client.post('/api/auth/password-strength', json={}).status_code == 400
