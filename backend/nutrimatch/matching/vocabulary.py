"""
Static scoring vocabularies. Built once at import, shared read-only.
"""

# Core food terms: weight 3.0
FOOD_TERMS = frozenset({
    # Proteins
    "chicken", "beef", "pork", "fish", "salmon", "turkey", "lamb", "shrimp",
    "tuna", "bacon", "sausage", "steak", "ham", "crab", "lobster",
    # Dairy
    "milk", "cheese", "yogurt", "butter", "cream", "eggs", "egg", "cheddar",
    "mozzarella", "parmesan",
    # Grains
    "bread", "rice", "pasta", "cereal", "oats", "wheat", "flour", "noodles",
    "tortilla", "bagel",
    # Produce
    "apple", "banana", "orange", "lettuce", "tomato", "potato", "onion",
    "carrot", "broccoli", "spinach", "strawberry", "blueberry", "grape",
    "lemon", "lime", "avocado", "cucumber", "pepper", "corn", "beans",
    # Beverages
    "juice", "soda", "cola", "coffee", "tea", "water", "lemonade",
    "smoothie", "shake",
    # Snacks and sweets
    "chips", "crackers", "cookies", "candy", "chocolate", "cake", "ice",
    "pie", "brownie", "popcorn",
    # Condiments
    "ketchup", "mustard", "mayo", "mayonnaise", "sauce", "salsa", "dressing",
    "syrup", "honey", "jam",
    # Prepared foods
    "pizza", "burger", "sandwich", "soup", "salad", "burrito", "taco",
    "wrap", "hot", "dog",
})

# Descriptive terms: weight 2.0
DESCRIPTIVE_TERMS = frozenset({
    # Preparation / processing
    "whole", "skim", "reduced", "fat", "low", "nonfat", "organic", "natural",
    "fresh", "frozen", "canned", "dried", "raw", "cooked", "grilled", "baked",
    "fried", "roasted", "smoked", "steamed",
    # Flavor / variety
    "vanilla", "strawberry", "plain", "flavored", "original", "classic",
    "sweet", "spicy", "mild", "hot", "regular", "lite", "light", "diet",
    # Type descriptors
    "white", "brown", "refined", "enriched", "fortified", "unsweetened",
    "sweetened", "salted", "unsalted", "boneless", "skinless", "lean",
    # Nutritional qualifiers
    "vitamin", "protein", "fiber", "calcium", "iron", "omega", "probiotic",
    "gluten", "free", "added",
})

# Dropped by the tokenizer: English stop words, units, packaging, retail noise
STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "of", "in", "on", "at", "to", "for",
    "with", "by", "from", "is", "it", "as", "be", "was", "are",
    # Units
    "oz", "fl", "lb", "lbs", "ml", "gallon", "quart", "pint", "liter",
    "liters", "gram", "grams", "kg", "ounce", "ounces", "cup", "cups",
    "tbsp", "tsp",
    # Packaging
    "pack", "packs", "count", "ct", "pk", "box", "bag", "bottle", "bottles",
    "can", "cans", "carton", "container", "pouch", "jar", "tub", "sleeve",
    "roll", "rolls",
    # Marketing / generic
    "size", "value", "family", "each", "per", "serving", "servings",
    "approx", "approximately", "bonus", "new", "improved", "product",
})

# Removed from the search query by the preprocessor
QUERY_NOISE_WORDS = frozenset({
    # Marketing
    "value", "family", "bonus", "new", "improved", "premium", "select",
    "choice", "quality", "best", "great", "delicious", "tasty", "favorite",
    "special",
    # Size descriptors
    "size", "large", "medium", "small", "mini", "jumbo", "giant", "big",
    "snack", "single", "double", "triple",
    # Packaging
    "package", "box", "bag", "bottle", "can", "jar", "tub", "carton",
    "sleeve", "pouch", "roll", "tube",
    # Too generic to narrow a search
    "food", "item", "product", "brand",
})

WEIGHT_FOOD = 3.0
WEIGHT_DESCRIPTIVE = 2.0
WEIGHT_DEFAULT = 1.0


def token_weight(token: str) -> float:
    if token in FOOD_TERMS:
        return WEIGHT_FOOD
    if token in DESCRIPTIVE_TERMS:
        return WEIGHT_DESCRIPTIVE
    return WEIGHT_DEFAULT
