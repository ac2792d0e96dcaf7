from .core.validation import FieldSchema, FieldType, email, min_length, required


SIGN_IN_SCHEMA = (
    FieldSchema(
        name="email",
        type=FieldType.EMAIL,
        constraints=[
            required("Email is required"),
            email("Please enter a valid email address."),
        ],
        type_message="Please enter a valid email address.",
    ),
    FieldSchema(
        name="password",
        constraints=[
            required("Password is required"),
            min_length(6, "Password must be at least 6 characters."),
        ],
    ),
)

CONTACT_SCHEMA = (
    FieldSchema(
        name="name",
        constraints=[min_length(2, "Name must be at least 2 characters.")],
    ),
    FieldSchema(
        name="email",
        type=FieldType.EMAIL,
        constraints=[email("Please enter a valid email address.")],
        type_message="Please enter a valid email address.",
    ),
    FieldSchema(
        name="message",
        constraints=[min_length(10, "Message must be at least 10 characters.")],
    ),
)


def describe(schema) -> list:
    """Return a JSON-friendly description of a form schema."""
    return [
        {
            "name": field_schema.name,
            "type": field_schema.type.value,
            "constraints": [
                {"kind": c.kind.value, "value": c.value if isinstance(c.value, int) else None}
                for c in field_schema.constraints
            ],
        }
        for field_schema in schema
    ]
