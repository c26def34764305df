from __future__ import annotations

from django.test import SimpleTestCase

from profiles.exceptions import SchemaConflictError
from profiles.merger import layer_validators, merge, password_length_overrides
from profiles.types import EntityKind, FieldDefinition, MergedSchema, SchemaDocument, ValidatorOverride


def field(name, type="string", **kwargs):
    return FieldDefinition(name=name, type=type, **kwargs)


class MergeTests(SimpleTestCase):
    def setUp(self) -> None:
        self.base = SchemaDocument([
            field("a"),
            field("b", validators={"length": {"min": 1}}, default="x", form={"label": "B"}),
        ])
        self.custom = SchemaDocument(
            [
                field("b", validators={"length": {"max": 5}, "required": {}}, default="y"),
                field("c", type="number"),
            ],
            kind=EntityKind.USER,
        )

    def test_order_is_base_then_new_custom_fields(self):
        merged = merge(self.base, self.custom)

        self.assertIsInstance(merged, MergedSchema)
        self.assertEqual(merged.names(), ["a", "b", "c"])
        self.assertEqual(merged.kind, EntityKind.USER)

    def test_collision_listed_after_new_custom_field(self):
        custom = SchemaDocument(
            [field("c", type="number"), field("b", validators={"length": {"max": 3}})],
            kind=EntityKind.GROUP,
        )

        merged = merge(self.base, custom)

        self.assertEqual(merged.names(), ["a", "b", "c"])
        self.assertEqual(merged["b"].validators, {"length": {"min": 1, "max": 3}})

    def test_colliding_field_layers_validators_onto_base(self):
        b = merge(self.base, self.custom)["b"]

        self.assertEqual(b.validators, {"length": {"min": 1, "max": 5}, "required": {}})
        self.assertEqual(list(b.validators), ["length", "required"])
        # Everything except validators stays as the base declared it.
        self.assertEqual(b.default, "x")
        self.assertEqual(b.form, {"label": "B"})

    def test_type_conflict(self):
        base = SchemaDocument([field("age", type="number")])
        custom = SchemaDocument([field("age", type="string")])

        with self.assertRaises(SchemaConflictError) as ctx:
            merge(base, custom)
        self.assertEqual(ctx.exception.field, "age")
        self.assertEqual(ctx.exception.base_type, "number")
        self.assertEqual(ctx.exception.custom_type, "string")

    def test_inputs_are_not_mutated(self):
        merge(self.base, self.custom, [ValidatorOverride("b", "length", {"min": 3})])

        self.assertEqual(self.base["b"].validators, {"length": {"min": 1}})
        self.assertEqual(self.custom["b"].validators, {"length": {"max": 5}, "required": {}})

    def test_merge_is_deterministic(self):
        self.assertEqual(merge(self.base, self.custom), merge(self.base, self.custom))

    def test_without_base(self):
        merged = merge(None, self.custom)
        self.assertEqual(merged.names(), ["b", "c"])
        self.assertEqual(merged["b"], self.custom["b"])

    def test_overrides_apply_last_and_skip_absent_fields(self):
        base = SchemaDocument([field("password", validators={"length": {"min": 1}})])
        overrides = password_length_overrides(8, 100)

        with self.assertLogs("profiles.merger", level="DEBUG") as logs:
            merged = merge(base, SchemaDocument([]), overrides)

        self.assertEqual(merged["password"].validators["length"], {"min": 8, "max": 100})
        self.assertNotIn("passwordc", merged)
        self.assertIn("passwordc", "\n".join(logs.output))

    def test_override_wins_over_custom_params(self):
        base = SchemaDocument([field("code", validators={"length": {"max": 4}})])
        custom = SchemaDocument([field("code", validators={"length": {"max": 6}})])

        merged = merge(base, custom, [ValidatorOverride("code", "length", {"max": 8})])
        self.assertEqual(merged["code"].validators, {"length": {"max": 8}})


class HelperTests(SimpleTestCase):
    def test_layer_validators_appends_new_rules(self):
        self.assertEqual(
            layer_validators({"length": {"min": 1}}, {"regex": {"regex": "^a"}, "length": {"min": 2}}),
            {"length": {"min": 2}, "regex": {"regex": "^a"}},
        )

    def test_password_length_overrides(self):
        self.assertEqual(
            password_length_overrides(8, None),
            [
                ValidatorOverride("password", "length", {"min": 8}),
                ValidatorOverride("passwordc", "length", {"min": 8}),
            ],
        )
        self.assertEqual(password_length_overrides(None, None), [])
