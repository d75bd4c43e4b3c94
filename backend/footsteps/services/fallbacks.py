"""
Local core responses: canned, in-persona text served when the model is
unreachable or a call fails.
"""
from typing import Optional

from footsteps.services.catalog import get_phase

DEFAULT_KEY = "Default"

LOCAL_CORE_RESPONSES = {
    "TIPP Skill": (
        "Biological reset confirmed. Temperature shifts and intense movement have successfully "
        "bypassed the emotional firestorm. Your heart rate is beginning to synchronise with safety. "
        "You have claimed this moment of stability."
    ),
    "STOP Skill": (
        "The automatic loop is broken. By choosing to pause, you have shifted from the reactive "
        "'using-self' to the observing 'True-Self'. This space between trigger and action is where "
        "your freedom lives."
    ),
    "5-4-3-2-1 Grounding": (
        "Sensory anchors are locked. Your brain is now processing the physical facts of your safe "
        "environment rather than the projections of anxiety. You are here, you are present, and you "
        "are secure."
    ),
    "Breathing Sanctuary": (
        "Vagal tone is increasing. Paced breathing has sent a direct safety signal to your nervous "
        "system. The biological storm is receding, leaving room for a clear, values-based choice."
    ),
    "Urge Surfing": (
        "The wave has reached its peak and is now breaking. By riding the urge without acting, you "
        "have physically weakened the neural pathway of the habit. Every surf is a victory for your "
        "future resilience."
    ),
    "First Aid Toolkit": (
        "Immediate tactical stability achieved. Your system is regulated and your centre is found. "
        "You are now capable of making a logical choice for your next step. The path ahead is clear."
    ),
    "Radical Acceptance": (
        "Reality acknowledged. By letting go of the fight against the 'now', you have eliminated the "
        "secondary suffering of resentment. You are ready to work with the truth of your situation."
    ),
    "Wise Mind Synthesis": (
        "Centre point achieved. You have acknowledged the heat of your emotions and the cold facts of "
        "reason. This synthesis is your most powerful tool for making high-integrity choices."
    ),
    "Functional Chain Analysis": (
        "Pattern deconstructed. You have identified the links in the chain of choice. Next time, your "
        "awareness of the 'prompting event' will be your shield. Choice is yours once more."
    ),
    "SMART Goals": (
        "Marker secured. This values-based objective acts as a compass for your expedition. You are "
        "moving closer to the True-Self you are architecting."
    ),
    DEFAULT_KEY: (
        "I am operating in Local Sanctuary Mode to protect your path in this low-signal area. Your "
        "effort is valid, your progress is secure, and your True-Self remains intact. Stay present."
    ),
}

CRISIS_OFFLINE_RESPONSE = (
    "I sense profound distress in your words. Please pause and reach out to one of the safety "
    "anchors provided in your Crisis Card. Your presence matters, and safety is our first priority."
)


def get_local_core_response(module_name: Optional[str]) -> str:
    """Canned response for a module; unknown or empty names get the default entry"""
    return LOCAL_CORE_RESPONSES.get(module_name or DEFAULT_KEY) or LOCAL_CORE_RESPONSES[DEFAULT_KEY]


def get_offline_response(phase_id: int, is_crisis: bool) -> str:
    """Counselor chat reply while offline"""
    if is_crisis:
        return CRISIS_OFFLINE_RESPONSE
    phase = get_phase(phase_id)
    title = phase.title if phase else "this phase"
    return (
        f"I am currently in Local Sanctuary Mode to protect your path. Even without a signal, your "
        f"journey through {title} continues. Every steady step you take is a win for your True-Self. "
        f"Stay present."
    )
