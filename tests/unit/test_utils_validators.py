from storefront.utils.validators import validate_billing_details

VALID = {
    "full_name": "Rahim Uddin",
    "email": "rahim@example.com",
    "phone": "+880 1711-000000",
    "address": "12 Road",
    "city": "Dhaka",
    "postal_code": "1207",
}

def test_valid_form_has_no_errors():
    assert validate_billing_details(VALID) == {}

def test_missing_email():
    errors = validate_billing_details({**VALID, "email": ""})
    assert errors == {"email": "Email is required"}

def test_invalid_email_and_phone():
    errors = validate_billing_details({**VALID, "email": "nope", "phone": "abc"})
    assert errors["email"] == "Email is invalid"
    assert errors["phone"] == "Phone number is invalid"

def test_all_required_fields():
    errors = validate_billing_details({})
    assert set(errors) == {"full_name", "email", "phone", "address", "city", "postal_code"}
    assert errors["postal_code"] == "Zip code is required"
