# Shared test schema and data.

from refstruct import parse_field


PEOPLE = {
    "title": "Team",
    "people": [
        {"id": 1, "name": "Al", "active": True},
        {"id": 2, "name": "Bea", "active": False},
        {"id": 3, "name": "Cy", "active": True},
    ],
}


PEOPLE_SCHEMA = {
    "type": "record",
    "name": "team",
    "children": [
        {"name": "title", "options": {"required": True}},
        {
            "type": "list",
            "name": "people",
            "item": {
                "type": "record",
                "name": "person",
                "children": [
                    {"name": "id", "options": {"generated": True}},
                    {"name": "name", "options": {"required": True}},
                    {"name": "active", "options": {"defaultValue": False}},
                    {"name": "role", "options": {"defaultValue": "member"}},
                ],
            },
        },
    ],
}


def people_schema():
    return parse_field(PEOPLE_SCHEMA)
