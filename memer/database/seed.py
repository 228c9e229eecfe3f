"""
memer/database/seed.py
Reference data loaded at startup: shop catalog and trivia questions
"""

from .models import ActiveEffects, Item, PassiveEffects, TriviaQuestion

HOUR_MS = 60 * 60 * 1000


def default_items() -> list[Item]:
    return [
        Item(
            id="fishing-rod",
            name="Fishing Rod",
            description="Passive +50 coins/hour",
            price=5000,
            type="tool",
            rarity="common",
            passive=PassiveEffects(coins_per_hour=50),
        ),
        Item(
            id="shovel",
            name="Rusty Shovel",
            description="Digs up the occasional bottle cap",
            price=1500,
            type="tool",
            rarity="common",
        ),
        Item(
            id="luck-potion",
            name="Luck Potion",
            description="+15% win rate for 1 hour",
            price=2500,
            type="powerup",
            rarity="uncommon",
            active=ActiveEffects(use_cooldown=HOUR_MS, duration=HOUR_MS, effect="luck_boost"),
            stock=50,
        ),
        Item(
            id="doge-plush",
            name="Doge Plush",
            description="Such soft. Very collectible.",
            price=4000,
            type="collectible",
            rarity="uncommon",
        ),
        Item(
            id="rare-pepe",
            name="Rare Pepe",
            description="Legendary collectible meme",
            price=25000,
            type="collectible",
            rarity="rare",
            stock=100,
        ),
        Item(
            id="dank-box",
            name="Dank Box",
            description="Contains 2-5 random items!",
            price=10000,
            type="lootbox",
            rarity="epic",
            active=ActiveEffects(effect="lootbox"),
            stock=20,
        ),
        Item(
            id="golden-trophy",
            name="Golden Trophy",
            description="Awarded to the dankest of memers",
            price=50000,
            type="collectible",
            rarity="epic",
            stock=25,
        ),
        Item(
            id="meme-crown",
            name="Meme Crown",
            description="Ruler of all memes",
            price=250000,
            type="collectible",
            rarity="legendary",
            stock=5,
        ),
    ]


TRIVIA_QUESTIONS = [
    TriviaQuestion(0, "What year was the 'Distracted Boyfriend' meme created?", ["2015", "2016", "2017", "2018"], 2),
    TriviaQuestion(1, "Which meme features a dog sitting in a burning room?", ["Grumpy Cat", "This is Fine", "Doge", "Pepe"], 1),
    TriviaQuestion(2, "What does 'HODL' originally stand for?", ["Hold On for Dear Life", "Hold On, Don't Leave", "Nothing, it's a typo", "Hold On, Double Loss"], 2),
    TriviaQuestion(3, "Which breed is the dog behind the Doge meme?", ["Shiba Inu", "Akita", "Corgi", "Husky"], 0),
    TriviaQuestion(4, "What is Pepe?", ["A cat", "A frog", "A dog", "A bird"], 1),
    TriviaQuestion(5, "Which phrase goes with the 'Stonks' meme?", ["Much wow", "Stonks", "Not stonks", "To the moon"], 1),
]
