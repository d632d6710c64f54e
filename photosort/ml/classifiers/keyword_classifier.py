# PhotoSort-AI
# Copyright (c) 2026 Abhishek Anand. Licensed under AGPL-3.0.
"""Filename keyword classification into person / pet / nature / vehicle."""

import logging
import re
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from photosort.ml.types import CATEGORY_ORDER, Category, CategoryMatch

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[_\-.]")


class KeywordClassifier:
    """
    Classify an image by the words in its filename.

    Every category is tested independently, so one filename can match
    several categories. Keywords match on word boundaries and, for most
    lists, also as plain substrings so that concatenated names such as
    ``mydogpic`` still match. First names only match as whole words:
    ``mercedes`` must not become a person through ``ed``.
    """

    KEYWORDS: Dict[str, Dict[str, List[str]]] = {
        "vehicle": {
            "types": [
                "car", "vehicle", "auto", "automobile", "truck", "bike", "bicycle", "motorcycle",
                "motorbike", "bus", "van", "suv", "jeep", "taxi", "cab", "scooter", "moped",
                "tractor", "trailer", "ambulance", "firetruck", "police", "lorry", "pickup",
                "sedan", "hatchback", "convertible", "coupe", "wagon", "minivan", "limousine",
                "roadster", "sports car",
            ],
            "brands": [
                "tesla", "bmw", "audi", "honda", "toyota", "ford", "mercedes", "benz",
                "volkswagen", "vw", "nissan", "hyundai", "kia", "chevrolet", "chevy", "mazda",
                "subaru", "lexus", "infiniti", "acura", "porsche", "ferrari", "lamborghini",
                "maserati", "bentley", "rolls", "royce", "jaguar", "land rover", "range rover",
                "volvo", "saab", "peugeot", "renault", "fiat", "alfa romeo", "chrysler", "dodge",
                "ram", "gmc", "cadillac", "buick", "lincoln", "suzuki", "mitsubishi", "isuzu",
                "daihatsu", "tata", "mahindra", "maruti", "skoda", "seat", "mini", "smart",
                "genesis", "rivian", "lucid", "polestar", "harley", "ducati", "yamaha",
                "kawasaki", "ktm", "triumph", "royal enfield", "bajaj", "hero", "tvs",
            ],
            "related": [
                "driving", "drive", "rode", "riding", "parked", "parking", "garage", "highway",
                "road", "traffic", "wheel", "tire", "engine", "dashboard", "steering",
                "saveclip", "carshow", "autoshow", "dealership", "showroom", "roadtrip",
                "carwash",
            ],
        },
        "pet": {
            "dogs": [
                "dog", "puppy", "pup", "doggy", "doggie", "canine", "hound", "mutt",
                "labrador", "lab", "retriever", "golden", "german shepherd", "shepherd", "gsd",
                "bulldog", "french bulldog", "frenchie", "poodle", "beagle", "husky",
                "malamute", "corgi", "pug", "boxer", "rottweiler", "doberman", "dalmatian",
                "chihuahua", "yorkie", "yorkshire", "shih tzu", "maltese", "pomeranian", "pom",
                "dachshund", "weiner", "pitbull", "pit bull", "terrier", "collie",
                "border collie", "aussie", "australian shepherd", "cocker spaniel", "spaniel",
                "mastiff", "great dane", "saint bernard", "bernese", "newfoundland", "akita",
                "shiba", "chow", "samoyed", "vizsla", "weimaraner", "pointer", "setter",
                "basset", "bloodhound", "greyhound", "whippet", "bichon", "havanese", "lhasa",
                "schnauzer", "airedale", "westie", "scottie", "cairn", "jack russell",
                "papillon", "pekingese", "cavalier", "boston",
            ],
            "cats": [
                "cat", "kitten", "kitty", "kittycat", "feline", "meow", "persian", "siamese",
                "maine coon", "ragdoll", "bengal", "abyssinian", "sphynx", "british shorthair",
                "scottish fold", "russian blue", "birman", "burmese", "oriental", "himalayan",
                "turkish", "norwegian", "siberian", "american shorthair", "exotic",
                "devon rex", "cornish rex", "manx", "tabby",
            ],
            "others": [
                "pet", "animal", "bird", "parrot", "parakeet", "budgie", "cockatiel", "macaw",
                "canary", "finch", "cockatoo", "lovebird", "conure", "rabbit", "bunny",
                "hamster", "guinea pig", "gerbil", "mouse", "rat", "ferret", "fish",
                "goldfish", "betta", "aquarium", "turtle", "tortoise", "lizard", "gecko",
                "iguana", "snake", "python", "frog", "toad", "hermit crab", "horse", "pony",
                "mare", "stallion", "foal", "equine", "cow", "calf", "bull", "goat", "sheep",
                "lamb", "pig", "piglet", "chicken", "hen", "rooster", "duck", "goose",
                "turkey", "donkey", "mule", "llama", "alpaca",
            ],
            "related": [
                "fauna", "creature", "furry", "paw", "tail", "whiskers", "collar", "leash",
                "fetch", "bark", "woof", "meowing", "purr", "vet", "petshop", "adoption",
                "rescue",
            ],
        },
        "nature": {
            "landscapes": [
                "nature", "landscape", "scenery", "scenic", "vista", "panorama", "view",
                "mountain", "hill", "peak", "summit", "cliff", "canyon", "valley", "gorge",
                "beach", "coast", "shore", "seaside", "oceanfront", "waterfront", "bay", "cove",
                "forest", "woods", "woodland", "jungle", "rainforest", "grove", "thicket",
                "desert", "dune", "oasis", "savanna", "prairie", "steppe", "tundra", "island",
                "peninsula", "archipelago", "atoll", "reef", "lagoon",
            ],
            "water": [
                "lake", "river", "stream", "creek", "brook", "waterfall", "cascade", "rapids",
                "ocean", "sea", "pond", "pool", "spring", "fountain", "geyser", "hot spring",
                "wetland", "marsh", "swamp", "bog", "estuary", "delta", "fjord",
            ],
            "sky": [
                "sky", "cloud", "sunset", "sunrise", "dawn", "dusk", "twilight", "golden hour",
                "rainbow", "aurora", "northern lights", "stars", "moon", "moonlight", "starry",
            ],
            "plants": [
                "tree", "flower", "plant", "garden", "park", "botanical", "greenhouse", "rose",
                "tulip", "daisy", "sunflower", "lily", "orchid", "lotus", "cherry blossom",
                "sakura", "lavender", "wildflower", "bouquet", "bloom", "blossom", "petal",
                "leaf", "leaves", "foliage", "fern", "moss", "ivy", "vine", "bamboo", "palm",
                "oak", "pine", "maple", "birch", "willow", "redwood", "sequoia", "eucalyptus",
                "grass", "lawn", "meadow", "field", "pasture", "farmland", "countryside",
                "bush", "shrub", "hedge", "cactus", "succulent", "mushroom", "fungus",
            ],
            "related": [
                "outdoor", "outside", "wilderness", "wild", "natural", "environment", "eco",
                "hiking", "hike", "trail", "trek", "camping", "camp", "backpacking", "flora",
                "greenery", "vegetation", "habitat", "ecosystem", "conservation",
                "national park", "reserve", "sanctuary", "arboretum",
            ],
        },
        "person": {
            "people": [
                "person", "people", "human", "face", "portrait", "selfie", "headshot",
                "profile", "man", "woman", "boy", "girl", "child", "children", "kid", "kids",
                "baby", "infant", "toddler", "teen", "teenager", "adult", "elder", "senior",
                "guy", "gal", "dude", "gentleman", "lady", "sir", "madam", "mr", "mrs", "ms",
                "miss",
            ],
            "relationships": [
                "family", "friend", "friends", "bestie", "bff", "buddy", "pal", "mate",
                "couple", "pair", "duo", "trio", "group", "squad", "gang", "crew", "team",
                "mom", "mother", "mama", "mum", "mommy", "dad", "father", "papa", "daddy",
                "parent", "parents", "son", "daughter", "brother", "sister", "sibling",
                "grandma", "grandmother", "grandpa", "grandfather", "grandparent", "aunt",
                "uncle", "cousin", "nephew", "niece", "husband", "wife", "spouse",
                "boyfriend", "girlfriend", "partner", "fiance", "fiancee",
            ],
            "events": [
                "wedding", "birthday", "party", "celebration", "graduation", "ceremony",
                "anniversary", "reunion", "gathering", "meetup", "hangout", "get together",
                "christmas", "thanksgiving", "easter", "halloween", "new year", "diwali",
                "eid", "hanukkah", "festival", "carnival", "prom", "homecoming", "shower",
                "reception", "engagement", "proposal", "baptism", "communion", "bar mitzvah",
            ],
            # Matched as whole words only
            "names": [
                "john", "james", "jimmy", "jim", "michael", "mike", "david", "dave", "robert",
                "rob", "bob", "bobby", "william", "will", "bill", "billy", "richard", "rick",
                "dick", "joseph", "joe", "joey", "thomas", "tom", "tommy", "charles", "charlie",
                "christopher", "chris", "daniel", "dan", "danny", "matthew", "matt", "anthony",
                "tony", "mark", "donald", "don", "donny", "steven", "steve", "paul", "andrew",
                "andy", "drew", "joshua", "josh", "kenneth", "ken", "kenny", "kevin", "kev",
                "brian", "george", "timothy", "tim", "timmy", "ronald", "ron", "ronny",
                "edward", "ed", "eddie", "ted", "teddy", "jason", "jay", "jeffrey", "jeff",
                "ryan", "jacob", "jake", "gary", "nicholas", "nick", "nicky", "eric",
                "jonathan", "jon", "johnny", "stephen", "larry", "justin", "scott", "scotty",
                "brandon", "benjamin", "ben", "benny", "samuel", "sam", "sammy", "raymond",
                "ray", "gregory", "greg", "frank", "frankie", "alexander", "alex", "patrick",
                "pat", "paddy", "jack", "jackie", "dennis", "denny", "jerry", "mary",
                "patricia", "patty", "trish", "jennifer", "jen", "jenny", "linda",
                "elizabeth", "liz", "beth", "lizzy", "barbara", "barb", "barbie", "susan",
                "sue", "suzy", "jessica", "jess", "jessie", "sarah", "sara", "karen", "lisa",
                "nancy", "betty", "margaret", "maggie", "meg", "peggy", "sandra", "sandy",
                "ashley", "ash", "kimberly", "kim", "kimmy", "emily", "em", "emma", "donna",
                "michelle", "shelly", "micky", "dorothy", "dot", "dottie", "carol", "amanda",
                "mandy", "melissa", "mel", "missy", "deborah", "deb", "debbie", "stephanie",
                "steph", "rebecca", "becky", "becca", "sharon", "laura", "cynthia", "cindy",
                "kathleen", "kathy", "kate", "katie", "amy", "angela", "angie", "shirley",
                "anna", "annie", "brenda", "pamela", "pam", "nicole", "nikki", "helen",
                "samantha", "katherine", "christine", "christy", "tina", "debra", "rachel",
                "rach", "carolyn", "janet", "jan", "catherine", "cathy", "maria", "heather",
                "diane", "di", "ruth", "ruthie", "julie", "jules", "olivia", "liv", "livvy",
                "joyce", "virginia", "ginny", "victoria", "vicky", "tori", "kelly", "lauren",
                "christina", "joan", "joanie", "evelyn", "eve", "evie", "judith", "judy",
                "jude", "megan", "meggie", "andrea", "andie", "cheryl", "hannah",
                "jacqueline", "martha", "gloria", "teresa", "terry", "ann", "anne",
                "madison", "maddie", "frances", "fran", "frannie", "kathryn", "janice",
                "jean", "jeanie", "abigail", "abby", "gail", "alice", "sophia", "sophie",
                "grace", "gracie", "chloe", "isabella", "bella", "izzy", "natalie", "nat",
                "zoe", "zoey", "lily", "maya", "mia", "ava",
                "rahul", "amit", "raj", "raju", "priya", "anita", "sanjay", "vijay", "ravi",
                "arun", "suresh", "ramesh", "pooja", "neha", "deepa", "sunita", "rekha",
                "seema", "meera", "kavita", "anand", "kumar", "singh", "sharma", "patel",
                "gupta", "verma", "rani", "devi", "lakshmi", "gita", "arjun", "krishna",
                "shiva", "ganesh", "lakshman", "sita", "radha", "durga", "saraswati",
                "parvati", "aarav", "vihaan", "aditya", "vivaan", "ananya", "aadhya", "diya",
                "pihu", "kavya", "ishaan", "rohan", "nikhil", "varun", "karan", "yash",
                "aryan", "dev", "reyansh", "ayaan", "atharva", "aanya", "saanvi", "anika",
                "navya", "tara", "myra", "ira", "nisha", "rita", "praveen", "prakash",
                "prasad", "pranav", "pradeep", "prashant", "pramod", "prabhu", "preeti",
                "priti",
            ],
            "related": [
                "selfie", "portrait", "headshot", "mugshot", "passport photo", "id photo",
                "profile pic", "avatar", "face pic", "groupie", "groufie",
            ],
        },
    }

    # (category, keyword lists, strict word boundary)
    RULES: Tuple[Tuple[Category, Tuple[str, ...], bool], ...] = (
        (Category.VEHICLE, ("types", "brands", "related"), False),
        (Category.PET, ("dogs", "cats", "others", "related"), False),
        (Category.NATURE, ("landscapes", "water", "sky", "plants", "related"), False),
        (Category.PERSON, ("people", "relationships", "events", "related"), False),
        (Category.PERSON, ("names",), True),
    )

    def __init__(self):
        self._patterns: Dict[str, Pattern] = {}

    @staticmethod
    def normalize(filename: str) -> str:
        """Lower-case the filename and turn ``_``, ``-`` and ``.`` into spaces."""
        return _SEPARATORS.sub(" ", (filename or "").lower())

    def _pattern(self, keyword: str) -> Pattern:
        pattern = self._patterns.get(keyword)
        if pattern is None:
            pattern = re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
            self._patterns[keyword] = pattern
        return pattern

    def find_keyword(
        self,
        text: str,
        keyword_lists: Sequence[Sequence[str]],
        strict: bool = False,
    ) -> Optional[str]:
        """Return the first keyword found in ``text``, or None.

        ``text`` must already be normalized.
        """
        for keywords in keyword_lists:
            for keyword in keywords:
                if self._pattern(keyword).search(text):
                    return keyword
                if not strict and keyword in text:
                    return keyword
        return None

    def classify(self, filename: str) -> List[CategoryMatch]:
        """
        Return every category whose keywords appear in ``filename``.

        Matches come back in fixed category order with confidence 1.0. A
        filename with no keyword yields a single ``other`` match.
        """
        text = self.normalize(filename)
        found: Dict[Category, str] = {}

        for category, list_names, strict in self.RULES:
            if category in found:
                continue
            lists = [self.KEYWORDS[category.value][name] for name in list_names]
            keyword = self.find_keyword(text, lists, strict=strict)
            if keyword:
                found[category] = keyword
                logger.debug(f"{category.value} detected in '{filename}': \"{keyword}\"")

        if not found:
            return [CategoryMatch(Category.OTHER, 1.0)]

        return [
            CategoryMatch(category, 1.0, matched=found[category])
            for category in CATEGORY_ORDER
            if category in found
        ]
