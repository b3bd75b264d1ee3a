"""
Example ingredient lines for training the LangExtract model.
"""
from langextract.data import ExampleData, Extraction


INGREDIENT_EXAMPLES = [
    ExampleData(
        text="""
2 1/4 cups all-purpose flour
1 cup butter, softened
1/2 tsp salt
1 cup milk
250 g Mehl
2 cloves garlic, peeled and minced
salt and pepper to taste
""",
        extractions=[
            Extraction(
                extraction_class="ingredient",
                extraction_text="2 1/4 cups all-purpose flour",
                attributes={"quantity": "2 1/4", "unit": "cup", "name": "all-purpose flour",
                            "preparation": None, "metric_quantity": "270",
                            "metric_unit": "g", "confidence": "0.95"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="1 cup butter, softened",
                attributes={"quantity": "1", "unit": "cup", "name": "butter",
                            "preparation": "softened", "metric_quantity": "227",
                            "metric_unit": "g", "confidence": "0.95"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="1/2 tsp salt",
                attributes={"quantity": "1/2", "unit": "tsp", "name": "salt",
                            "preparation": None, "metric_quantity": "2.5",
                            "metric_unit": "ml", "confidence": "0.9"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="1 cup milk",
                attributes={"quantity": "1", "unit": "cup", "name": "milk",
                            "preparation": None, "metric_quantity": "237",
                            "metric_unit": "ml", "confidence": "0.95"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="250 g Mehl",
                attributes={"quantity": "250", "unit": "g", "name": "Mehl",
                            "preparation": None, "metric_quantity": None,
                            "metric_unit": None, "confidence": "0.95"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="2 cloves garlic, peeled and minced",
                attributes={"quantity": "2", "unit": "clove", "name": "garlic",
                            "preparation": "peeled and minced", "metric_quantity": None,
                            "metric_unit": None, "confidence": "0.8"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="salt and pepper to taste",
                attributes={"quantity": None, "unit": None, "name": "salt and pepper",
                            "preparation": "to taste", "metric_quantity": None,
                            "metric_unit": None, "confidence": "0.5"}
            ),
        ]
    ),
]
