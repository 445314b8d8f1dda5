from __future__ import annotations

from mindconnect.schemas.chat import BotMode

MINDFUL_RESPONSES: dict[str, str] = {
    "anxious": "Take a deep breath. Anxiety is temporary. Try the 4-7-8 breathing technique: breathe in for 4 counts, hold for 7, exhale for 8. You're safe right now. 🌿",
    "stressed": "It's okay to feel overwhelmed. Break your tasks into smaller steps. Take a 5-minute break to stretch or walk. Remember, progress over perfection. 🧘",
    "exam": "Exam stress is normal. Try studying in 25-minute focused sessions with 5-minute breaks (Pomodoro technique). Stay hydrated and get enough sleep. You've got this. 📚",
    "relax": "Let's find calm together. Close your eyes and focus on your breath. Notice 5 things you can see, 4 you can touch, 3 you can hear, 2 you can smell, 1 you can taste. 🌸",
    "sleep": "Good sleep is essential. Try a wind-down routine: dim lights 1 hour before bed, avoid screens, try gentle stretching or reading. Your mind needs rest. 🌙",
    "lonely": "Feeling lonely is valid. Reach out to a friend, join a support circle, or write in your journal. Connection starts with small steps. You matter. 💜",
    "default": "I'm here to support you. Tell me more about what you're feeling, or ask me about relaxation techniques, study tips, or mindfulness practices. 🌿",
}

BOOST_RESPONSES: dict[str, str] = {
    "anxious": "You've got this! Channel that nervous energy into action. Make a quick to-do list and tackle one thing at a time. You're stronger than you think! 💪",
    "stressed": "Stress means you care! Use that energy. Prioritize your top 3 tasks today. Crush them one by one. You're capable of amazing things! 🚀",
    "exam": "Exam time = game time! You've prepared for this. Review your notes, stay confident, and trust your knowledge. You're going to ace this! 🎯",
    "relax": "Take a power break! Do 10 jumping jacks, drink water, and shake it off. Then come back stronger. You're unstoppable! ⚡",
    "sleep": "Rest is productive! Your brain consolidates learning during sleep. Prioritize 7-8 hours tonight. Tomorrow you'll be sharper and ready to win! 🏆",
    "lonely": "You're not alone in this journey! Join a study group, reach out to classmates, or connect in our support circles. Your tribe is waiting! 🌟",
    "default": "Let's turn that energy into action! Tell me what's on your mind - whether it's study stress, motivation, or time management. I'm here to help you thrive! ⚡",
}

# Checked in order; the first topic with a matching keyword wins.
_TOPIC_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("anxious", ("anxious", "anxiety", "nervous")),
    ("stressed", ("stress", "overwhelm")),
    ("exam", ("exam", "test", "study")),
    ("relax", ("relax", "calm", "peace")),
    ("sleep", ("sleep", "tired", "rest")),
    ("lonely", ("lonely", "alone", "isolated")),
)


def detect_topic(message: str) -> str:
    lowered = message.lower()
    for topic, keywords in _TOPIC_KEYWORDS:
        if any(k in lowered for k in keywords):
            return topic
    return "default"


def fallback_reply(message: str, mode: BotMode) -> str:
    responses = MINDFUL_RESPONSES if mode == "mindful" else BOOST_RESPONSES
    return responses[detect_topic(message)]
