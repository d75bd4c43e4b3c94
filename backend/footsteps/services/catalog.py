"""
Static catalogue: recovery phases, coping exercises and footstep ranks
"""
from dataclasses import asdict, dataclass
from typing import List, Optional


@dataclass(frozen=True)
class RecoveryPhase:
    id: int
    title: str
    subtitle: str
    benefit_summary: str


@dataclass(frozen=True)
class Exercise:
    id: str
    title: str
    description: str
    category: str
    recommended_phase: int
    framework: str


@dataclass(frozen=True)
class Rank:
    id: str
    threshold: int
    title: str
    icon: str


RECOVERY_PHASES = [
    RecoveryPhase(1, "Phase 1: Foundations", "Undergrowth: Biological Safety", "biological stabilisation"),
    RecoveryPhase(2, "Phase 2: Regulation", "Canopy: Skills Acquisition", "emotional mastery"),
    RecoveryPhase(3, "Phase 3: Identity", "Plateau: Relational Repair", "identity synthesis"),
    RecoveryPhase(4, "Phase 4: Meaning", "Peaks: Depth Integration", "purpose alignment"),
    RecoveryPhase(5, "Phase 5: Legacy", "Summit: Mentorship & Vigilance", "legacy building"),
]

COPING_EXERCISES = [
    Exercise("window-of-tolerance", "Window of Tolerance", "Identify your current nervous system state and find your centre.", "Self-Regulation", 1, "Somatic"),
    Exercise("first_aid", "First Aid Toolkit", "Immediate tactical tools for crisis regulation and stability.", "Emergency", 1, "DBT/Somatic"),
    Exercise("rest-skill", "Stop the Slide: REST", "Relax, Evaluate, Set Intention, and Take Action to prevent relapse.", "Prevention", 1, "DBT"),
    Exercise("reducing-vulnerability", "Body Balance: HALT", "Manage physical vulnerabilities like sleep, diet, and physical health.", "Stability", 1, "DBT/HALT"),
    Exercise("grounding", "5-4-3-2-1 Grounding", "Anchor your True-Self in the present by engaging your senses.", "Mindfulness", 1, "Somatic"),
    Exercise("breathing-exercises", "Breathing Sanctuary", "Gentle techniques to regulate your system and find your centre.", "Breathing", 1, "Somatic"),
    Exercise("cost-benefit-analysis", "Motivation Balance", "A gentle tool to weigh the costs of old patterns versus the gifts of recovery.", "Motivation", 1, "MI"),
    Exercise("chain-analysis", "Understand Patterns", "Deconstruct an urge using the Triggers → Choice model.", "CBT Basics", 1, "CBT"),
    Exercise("self-esteem-foundations", "Self-Worth Foundations", "Explore your core values and the strengths of your True-Self.", "True-Self", 1, "ACT"),
    Exercise("daily-planner", "Daily Routine Architect", "Design a gentle plan to build recovery habits and protect your time.", "Stability", 1, "CBT"),
    Exercise("crisis-survival-kit", "Crisis Survival Kit", "Survive high-intensity cravings with harm reduction and self-soothing.", "Emergency", 2, "DBT"),
    Exercise("physiological-coping", "Neural Bio-Hacking", "Physically force your body into calm using temperature and breath.", "Somatic", 2, "DBT/Biology"),
    Exercise("thought-defusion", "Thought Defusion", "Unhook from repetitive negative thoughts and cravings.", "Mindfulness", 2, "ACT"),
    Exercise("urge-surfing", "Urge Surfing", "Learn to ride the wave of cravings without needing to act.", "Mindfulness", 2, "DBT"),
    Exercise("tipp-skill", "TIPP: Biological Reset", "Fast-acting skills to physically lower emotional arousal.", "Distress Tolerance", 2, "DBT"),
    Exercise("somatic-toolkit", "Body-Based Resets", "Body tapping and somatic techniques to release tension.", "Somatic Therapy", 2, "Somatic"),
    Exercise("butterfly-hug", "The Butterfly Hug", "Gentle bilateral stimulation for emotional regulation.", "EMDR Tools", 2, "Somatic"),
    Exercise("accepts-skill", "ACCEPTS: Gentle Distraction", "Proven ways to temporarily shift your focus during emotional peaks.", "Distress Tolerance", 2, "DBT"),
    Exercise("improve-skill", "IMPROVE: Perspective Shift", "Strategies that create meaning and calm during difficult moments.", "Distress Tolerance", 2, "DBT"),
    Exercise("wise-mind", "Wise Mind Synthesis", "The core DBT skill for balancing logic and emotion into wisdom.", "Core DBT", 2, "DBT"),
    Exercise("radical-acceptance", "Accepting Reality", "Shift from 'Willful' to 'Willing' to stop unnecessary suffering.", "Distress Tolerance", 2, "DBT"),
    Exercise("video-sanctuary", "Video Sanctuary", "Immerse yourself in a calming atmosphere to soothe your mind.", "Mindfulness", 2, "Mindfulness"),
    Exercise("meditation-timer", "Meditation Sanctuary", "A quiet space for mindfulness with gentle chimes.", "Mindfulness", 2, "Mindfulness"),
    Exercise("rpp-builder", "Safety Blueprint (RPP)", "Build your living guide for triggers and support.", "Planning", 2, "CBT"),
    Exercise("inner-critic-challenge", "Inner Critic Challenge", "Gently question the negative voices that undermine your peace.", "Anxiety", 2, "CBT"),
    Exercise("exposure_tool", "Confidence Hierarchy", "Gently facing specific fears or triggers one rung at a time.", "Anxiety", 2, "CBT"),
    Exercise("opposite-action", "Rewiring Reactions", "Do the opposite of a destructive urge to change the underlying emotion.", "Regulation", 3, "DBT"),
    Exercise("attachment-quiz", "Connection Style Insight", "A gentle reflection on how you relate to others.", "Assessment", 3, "CBT"),
    Exercise("emotional-boundaries", "Saying No & Boundaries", "Master the art of setting limits without guilt or aggression.", "Interpersonal", 3, "DBT"),
    Exercise("assertiveness-tool", "Kind Communication (DEAR MAN)", "Master the art of asking for what you need with respect and confidence.", "Interpersonal", 3, "DBT"),
    Exercise("smart-goals", "True-Self SMART Goals", "Break down your intentions into clear, achievable steps.", "Planning", 3, "ACT"),
    Exercise("cognitive-reframing", "Thought Restructuring", "Identify and gently shift unhelpful thought patterns.", "CBT Tools", 3, "CBT"),
    Exercise("problem_solving", "SOLVE Model", "A structured approach to navigating challenges without feeling overwhelmed.", "Skill Building", 3, "CBT"),
    Exercise("accountability-journey", "Accountability Journey", "Take ownership of your path and embrace the power of responsibility.", "Character Growth", 3, "Character"),
    Exercise("trust_steps", "Steps to Rebuild Trust", "A roadmap to healing relationships and restoring integrity.", "Interpersonal", 3, "Gottman/ACT"),
    Exercise("cognitive-rehearsal", "Practice Under Pressure", "Visualize and rehearse coping skills under simulated high-stress scenarios.", "Mastery", 4, "DBT/CBT"),
    Exercise("behaviour-tree", "Behaviour Tree Map", "Gently map your actions to underlying beliefs and needs.", "Self-Awareness", 4, "CBT"),
    Exercise("emotional-exploration", "Emotional Exploration", "Explore the layers of your emotions with curiosity and kindness.", "Self-Awareness", 4, "CBT"),
    Exercise("spirituality", "Spirituality & Meaning", "Connect with your sense of purpose and the wider world.", "True-Self", 4, "ACT"),
    Exercise("shadow-work", "Shadow Integration Hub", "Advanced archetypal work to integrate the 'Using-Self' into your True-Self.", "Deep Identity", 4, "Jungian/ACT"),
    Exercise("affirmation-deck", "Affirmation Cards", "Browse hand-crafted affirmations to strengthen your heart.", "Mindset", 4, "ACT"),
    Exercise("working-backwards", "Backward Planning", "Define a vision for your future True-Self and chart the path toward it.", "Actualisation", 4, "ACT"),
    Exercise("pain_management", "Somatic Ease", "Targeted visualisation and acceptance for managing physical discomfort.", "Somatic", 5, "Somatic"),
    Exercise("progress-monitoring", "Pattern Progress Hub", "A gentle dashboard to track your healthy choices and glimmers.", "Maintenance", 5, "CBT"),
    Exercise("wayfinder-beacon", "The Wayfinder Beacon", "Synthesise your wisdom into messages for those earlier on the path.", "Service", 5, "Altruism/Legacy"),
]

RANKS = [
    Rank("seeker", 0, "The Seeker", "🔍"),
    Rank("builder", 11, "The Builder", "🏗️"),
    Rank("resilient", 31, "The Resilient", "🌳"),
    Rank("guardian", 71, "The Guardian", "🛡️"),
    Rank("wayfinder", 150, "The Wayfinder", "🌌"),
]

FINAL_RANK_HEADROOM = 500
FINAL_RANK_NEXT_TITLE = "The Eternal Path"


def get_phase(phase_id: int) -> Optional[RecoveryPhase]:
    for phase in RECOVERY_PHASES:
        if phase.id == phase_id:
            return phase
    return None


def exercises_for_phase(phase_id: Optional[int] = None) -> List[Exercise]:
    """Exercises recommended for a phase (all of them when phase_id is None)"""
    if phase_id is None:
        return list(COPING_EXERCISES)
    return [exercise for exercise in COPING_EXERCISES if exercise.recommended_phase == phase_id]


def get_rank_data(footsteps: int) -> dict:
    """Current rank for a footstep count plus what it takes to reach the next one"""
    footsteps = max(footsteps, 0)
    current = RANKS[0]
    for rank in RANKS:
        if footsteps >= rank.threshold:
            current = rank

    index = RANKS.index(current)
    following = RANKS[index + 1] if index + 1 < len(RANKS) else None

    data = asdict(current)
    data["next_threshold"] = following.threshold if following else footsteps + FINAL_RANK_HEADROOM
    data["next_title"] = following.title if following else FINAL_RANK_NEXT_TITLE
    return data
