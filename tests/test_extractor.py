"""Tests for free-text field extraction."""

import pytest

from foodscan.extractor import (
    extract,
    extract_description,
    extract_nutrition,
    extract_product_name,
)
from foodscan.models import NOT_AVAILABLE, UNKNOWN_PRODUCT

FULL_REPLY = """\
Product Name: Nature Valley Crunchy Granola Bar
Description: Oats 'n honey granola bars, two bars per pouch.
Nutritional Information:
  - Calories: 190 kcal
  - Fats: 7g
  - Carbohydrates: 29g
  - Proteins: 4g
"""


class TestExtract:
    def test_colon(self):
        assert extract("Calories: 250kcal", "calories") == "250kcal"

    def test_no_match_returns_none(self):
        assert extract("no data here", "calories") is None

    def test_case_insensitive(self):
        assert extract("CALORIES: 90", "calories") == "90"

    def test_dash(self):
        assert extract("Protein - 5g", "protein") == "5g"

    def test_equals(self):
        assert extract("Fat = 3 g", "fat") == "3 g"

    def test_bold_key(self):
        assert extract("**Sugar**: 12g", "sugar") == "12g"

    def test_tagged(self):
        assert extract("<calories>90</calories>", "calories") == "90"

    def test_table_row(self):
        assert extract("| Calories | 200 kcal |", "calories") == "200 kcal"

    def test_value_trimmed(self):
        assert extract("Calories:   250 kcal   ", "calories") == "250 kcal"

    def test_bullet_without_colon(self):
        assert extract("- Protein 8g", "protein") == "8g"

    def test_sentence_number_with_unit(self):
        text = "The bar has 140mg sodium in total. Enjoy."
        assert extract(text, "sodium") == "140mg"

    def test_short_sentence_without_number(self):
        text = "The product contains no sugar. Buy now."
        assert extract(text, "sugar") == "The product contains no sugar"

    def test_long_sentence_without_number_is_skipped(self):
        text = "This sugar " + "is described at great length " * 5 + "without numbers."
        assert extract(text, "sugar") is None

    def test_alternate_key(self):
        assert extract("Energy: 120 kcal", "calories", "energy") == "120 kcal"

    def test_earlier_key_wins(self):
        text = "Fat: 3g\nFats: 5g"
        assert extract(text, "fats", "fat") == "5g"
        assert extract(text, "fat", "fats") == "3g"

    def test_structural_pattern_before_dash(self):
        text = "Calories - 100\nCalories: 200"
        assert extract(text, "calories") == "200"

    def test_key_with_regex_metacharacters(self):
        assert extract("Fat (g): 7", "fat (g)") == "7"

    def test_deterministic(self):
        assert extract(FULL_REPLY, "calories") == extract(FULL_REPLY, "calories")


class TestExtractProductName:
    def test_labelled(self):
        assert extract_product_name(FULL_REPLY) == "Nature Valley Crunchy Granola Bar"

    def test_this_is_a(self):
        text = "This is a box of Frosted Flakes cereal."
        assert extract_product_name(text) == "box of Frosted Flakes cereal"

    def test_first_sentence(self):
        text = "Fresh squeezed orange juice in a carton. Tastes great!"
        assert extract_product_name(text) == "Fresh squeezed orange juice in a carton"

    @pytest.mark.parametrize("text", ["", "ok.", "Hmm?"])
    def test_unknown(self, text):
        assert extract_product_name(text) == UNKNOWN_PRODUCT


class TestExtractDescription:
    def test_labelled(self):
        assert (
            extract_description(FULL_REPLY)
            == "Oats 'n honey granola bars, two bars per pouch."
        )

    def test_text_before_nutrition(self):
        text = "Crunchy oat clusters with honey and almonds.\nCalories: 120"
        assert extract_description(text) == "Crunchy oat clusters with honey and almonds."

    def test_short_text_returned_whole(self):
        assert extract_description("Just a snack") == "Just a snack"


class TestExtractNutrition:
    def test_full_reply(self):
        info = extract_nutrition(FULL_REPLY)
        assert info.calories == "190 kcal"
        assert info.fats == "7g"
        assert info.carbs == "29g"
        assert info.proteins == "4g"

    def test_missing_fields(self):
        info = extract_nutrition("Product Name: Water\nCalories: 0 kcal")
        assert info.calories == "0 kcal"
        assert info.fats == NOT_AVAILABLE
        assert info.carbs == NOT_AVAILABLE
        assert info.proteins == NOT_AVAILABLE

    def test_alternate_keys(self):
        text = "Energy: 80 kcal\nTotal fat: 1g\nCarbs: 20g\nProtein: 2g"
        info = extract_nutrition(text)
        assert info.calories == "80 kcal"
        assert info.fats == "1g"
        assert info.carbs == "20g"
        assert info.proteins == "2g"

    def test_units_not_normalized(self):
        info = extract_nutrition("Calories: about 250 calories per serving")
        assert info.calories == "about 250 calories per serving"
