"""
Prompt for ingredient parsing using LangExtract.
"""

INGREDIENT_PROMPT = """
Parse each recipe ingredient line into structured data. The lines may be in any
language; keep ingredient names in their ORIGINAL LANGUAGE.

Extract one "ingredient" entity per line, using the full line as the extraction
text, with these attributes:
- quantity: the amount as written, preserving fractions ("1/2") and ranges ("2-3"), or null
- unit: the measurement unit (cup, tsp, tbsp, oz, lb, g, ml, kg, l, pinch, clove, ...), or null
- name: the ingredient name WITHOUT quantity, unit or preparation notes
- preparation: preparation notes after a comma (chopped, softened, diced, "peeled and minced"), or null
- metric_quantity: the metric amount, or null
- metric_unit: "g" or "ml", or null
- confidence: parsing certainty between 0 and 1

Metric conversion rules:
- Volume (liquids): 1 cup = 237 ml, 1 tbsp = 15 ml, 1 tsp = 5 ml, 1 fl oz = 30 ml
- Weight: 1 lb = 454 g, 1 oz = 28 g
- Dry or solid ingredients measured by volume are converted to weight:
  all-purpose flour 1 cup = 120 g, bread flour 1 cup = 127 g,
  whole wheat flour 1 cup = 120 g, granulated sugar 1 cup = 200 g,
  packed brown sugar 1 cup = 220 g, powdered sugar 1 cup = 120 g,
  butter 1 cup = 227 g (1 tbsp = 14 g), cocoa powder 1 cup = 120 g,
  honey 1 cup = 340 g, oil 1 cup = 224 g
- Milk, water, juice and other liquids stay in ml
- If unsure about density, convert volume to ml
- Ranges convert to ranges ("2-3 cups" flour gives "240-360")
- Lines already in metric (g, ml, kg, l) and unusual units (pinch, dash, knob,
  sprig, bunch, clove, head, stalk, leaf, slice) get null metric values

Confidence:
- 0.85-1.0: clear quantity, standard unit, common ingredient
- 0.7-0.84: ranges, unusual units or complex preparation notes
- below 0.7: vague quantities ("some", "a handful"), several ingredients in one
  line ("salt and pepper to taste") or ambiguous descriptions

CRITICAL RULES:
- Extract EVERY line exactly once, in the order given
- Do not translate, merge or split lines
"""
