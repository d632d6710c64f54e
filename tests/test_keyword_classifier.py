from photosort.ml.classifiers import KeywordClassifier
from photosort.ml.types import Category


def _categories(filename):
    return [m.category for m in KeywordClassifier().classify(filename)]


def test_dog_in_car_is_vehicle_and_pet():
    assert _categories("my_dog_in_the_car.jpg") == [Category.VEHICLE, Category.PET]


def test_brand_does_not_trigger_first_name():
    # "mercedes" contains "ed", which is only a whole-word name
    assert _categories("mercedes_benz.jpg") == [Category.VEHICLE]


def test_family_party_is_person_only():
    assert _categories("family_birthday_party.jpg") == [Category.PERSON]


def test_first_name_as_whole_word():
    assert Category.PERSON in _categories("john_at_home.jpg")


def test_substring_match_for_concatenated_names():
    assert Category.PET in _categories("mydogpic.png")


def test_no_keyword_yields_other():
    matches = KeywordClassifier().classify("IMG_0001.jpg")
    assert len(matches) == 1
    assert matches[0].category == Category.OTHER
    assert matches[0].is_other


def test_results_are_in_fixed_order_with_full_confidence():
    matches = KeywordClassifier().classify("selfie_with_cat_at_beach_in_tesla.jpg")
    assert [m.category for m in matches] == [
        Category.VEHICLE, Category.PET, Category.NATURE, Category.PERSON,
    ]
    assert all(m.confidence == 1.0 for m in matches)
    assert matches[1].matched == "cat"


def test_separators_are_normalized():
    assert KeywordClassifier.normalize("Sunset-At_The.Beach.JPG") == "sunset at the beach jpg"
