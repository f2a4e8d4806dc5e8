import logging
from typing import Optional

from health_assistant.core.models import GeneratedResponse, MedicalCondition
from health_assistant.knowledge.base import KnowledgeBase
from health_assistant.knowledge.loader import KnowledgeTables, get_knowledge_tables

logger = logging.getLogger(__name__)

TEMPLATE_LANGUAGES = ("en", "hi", "te")

EMERGENCY_RESPONSES = {
    "en": "This sounds like a medical emergency. Please call emergency services immediately or go to the nearest hospital.",
    "hi": "यह एक चिकित्सा आपातकाल की तरह लगता है। कृपया तुरंत आपातकालीन सेवाओं को कॉल करें या निकटतम अस्पताल जाएं।",
    "te": "ఇది వైద్య అత్యవసర పరిస్థితిలా అనిపిస్తోంది. దయచేసి వెంటనే అత్యవసర సేవలకు కాల్ చేయండి లేదా సమీపంలోని ఆసుపత్రికి వెళ్లండి.",
}

EMERGENCY_SUGGESTIONS = ["Call emergency services", "Go to nearest hospital", "Stay calm"]

CONDITION_TEMPLATES = {
    "en": (
        "{name} is a medical condition that can cause {symptoms}. "
        "Common causes include {causes}. "
        "Treatment options include {treatments}. "
        "Important precautions: {precautions}. "
        "Please consult with a healthcare professional for proper diagnosis and treatment."
    ),
    "hi": (
        "{name} एक चिकित्सा स्थिति है जो {symptoms} का कारण बन सकती है। "
        "सामान्य कारणों में {causes} शामिल हैं। "
        "उपचार के विकल्पों में {treatments} शामिल हैं। "
        "महत्वपूर्ण सावधानियां: {precautions}। "
        "उचित निदान और उपचार के लिए कृपया एक स्वास्थ्य देखभाल पेशेवर से परामर्श करें।"
    ),
    "te": (
        "{name} అనేది {symptoms} కలిగించే వైద్య పరిస్థితి. "
        "సాధారణ కారణాలలో {causes} ఉన్నాయి. "
        "చికిత్సా ఎంపికలలో {treatments} ఉన్నాయి. "
        "ముఖ్యమైన జాగ్రత్తలు: {precautions}. "
        "సరైన నిర్ధారణ మరియు చికిత్స కోసం దయచేసి ఆరోగ్య సంరక్షణ నిపుణుడిని సంప్రదించండి."
    ),
}

GENERAL_RESPONSES = {
    "en": {
        "symptom_inquiry": "I understand you're experiencing some symptoms. Could you please describe them in more detail? This will help me provide better guidance.",
        "disease_info": "I'd be happy to provide information about health conditions. What specific condition would you like to know about?",
        "medication_query": "For medication advice, I recommend consulting with a healthcare professional or pharmacist. They can provide personalized recommendations based on your specific needs.",
        "general_health": "I'm here to help with general health information. What would you like to know about maintaining good health?",
        "default": "I'm here to help with your health questions. Could you please provide more details about what you're experiencing?",
    },
    "hi": {
        "symptom_inquiry": "मैं समझता हूं कि आप कुछ लक्षणों का अनुभव कर रहे हैं। क्या आप कृपया उन्हें अधिक विस्तार से वर्णन कर सकते हैं?",
        "disease_info": "मैं स्वास्थ्य स्थितियों के बारे में जानकारी प्रदान करने में खुश हूं। आप किस विशिष्ट स्थिति के बारे में जानना चाहते हैं?",
        "medication_query": "दवा सलाह के लिए, मैं एक स्वास्थ्य देखभाल पेशेवर या फार्मासिस्ट से परामर्श करने की सलाह देता हूं।",
        "general_health": "मैं सामान्य स्वास्थ्य जानकारी में मदद के लिए यहां हूं। अच्छे स्वास्थ्य को बनाए रखने के बारे में आप क्या जानना चाहते हैं?",
        "default": "मैं आपके स्वास्थ्य प्रश्नों में मदद के लिए यहां हूं। क्या आप कृपया अपने अनुभव के बारे में अधिक विवरण प्रदान कर सकते हैं?",
    },
    "te": {
        "symptom_inquiry": "మీరు కొన్ని లక్షణాలను అనుభవిస్తున్నట్లు నేను అర్థం చేసుకున్నాను. దయచేసి వాటిని మరింత వివరంగా వివరించగలరా?",
        "disease_info": "ఆరోగ్య పరిస్థితుల గురించి సమాచారం అందించడంలో నేను సంతోషిస్తున్నాను. మీరు ఏ నిర్దిష్ట పరిస్థితి గురించి తెలుసుకోవాలనుకుంటున్నారు?",
        "medication_query": "మందుల సలహా కోసం, ఆరోగ్య సంరక్షణ నిపుణుడు లేదా ఫార్మసిస్ట్‌ను సంప్రదించమని నేను సిఫార్సు చేస్తున్నాను.",
        "general_health": "సాధారణ ఆరోగ్య సమాచారంతో సహాయం చేయడానికి నేను ఇక్కడ ఉన్నాను. మంచి ఆరోగ్యాన్ని నిర్వహించడం గురించి మీరు ఏమి తెలుసుకోవాలనుకుంటున్నారు?",
        "default": "మీ ఆరోగ్య ప్రశ్నలతో సహాయం చేయడానికి నేను ఇక్కడ ఉన్నాను. మీరు అనుభవిస్తున్న దాని గురించి మరింత వివరాలను అందించగలరా?",
    },
}

GENERAL_SUGGESTIONS = {
    "symptom_inquiry": ["Describe symptoms in detail", "Note when symptoms started", "Track symptom severity", "Consult a healthcare provider"],
    "disease_info": ["Research reliable medical sources", "Consult healthcare professionals", "Ask specific questions", "Understand treatment options"],
    "medication_query": ["Consult pharmacist", "Check drug interactions", "Follow dosage instructions", "Monitor for side effects"],
    "general_health": ["Maintain balanced diet", "Exercise regularly", "Get adequate sleep", "Manage stress", "Regular health checkups"],
    "default": ["Provide more details", "Consult healthcare professional", "Keep health records", "Follow medical advice"],
}

FOLLOW_UP_TEMPLATE = "Would you like more information about {name} or its treatment options?"
CONDITION_NOTE_TEMPLATE = "Note: You have recorded conditions: {conditions}. Please inform your healthcare provider."

EMERGENCY_CONFIDENCE = 1.0
CONDITION_CONFIDENCE = 0.9
GENERAL_CONFIDENCE = 0.5


def template_language(language: str) -> str:
    """Language the canned templates actually render in for `language`."""
    return language if language in TEMPLATE_LANGUAGES else "en"


class ResponseSynthesizer:
    """Canned, localized answers built from the knowledge base."""

    def __init__(self, tables: Optional[KnowledgeTables] = None):
        tables = tables or get_knowledge_tables()
        self.knowledge_base = KnowledgeBase(tables.conditions)
        self.emergency_triggers = tables.vocabulary.emergency_triggers

    def has_emergency_signal(self, intent: str, entities: list[str]) -> bool:
        return intent == "emergency" or any(e.lower() in self.emergency_triggers for e in entities)

    def is_emergency(self, intent: str, entities: list[str]) -> bool:
        """Whether the request itself justifies an emergency flag.

        True for the emergency intent, a trigger entity, or a matched
        condition that is marked as an emergency.
        """
        if self.has_emergency_signal(intent, entities):
            return True
        condition = self.knowledge_base.find_first(entities)
        return condition is not None and condition.emergency

    def get_medical_response(
        self,
        intent: str,
        entities: list[str],
        user_conditions: Optional[list[str]] = None,
        language: str = "en",
    ) -> GeneratedResponse:
        user_conditions = user_conditions or []
        template_lang = template_language(language)

        if self.has_emergency_signal(intent, entities):
            logger.warning(f"Emergency detected (intent={intent}, entities={entities})")
            return GeneratedResponse(
                response=EMERGENCY_RESPONSES[template_lang],
                suggestions=list(EMERGENCY_SUGGESTIONS),
                emergency=True,
                confidence=EMERGENCY_CONFIDENCE,
            )

        condition = self.knowledge_base.find_first(entities)
        if condition is not None:
            logger.info(f"Matched knowledge base condition: {condition.name}")
            suggestions = list(condition.treatments)
            if user_conditions:
                suggestions.append(CONDITION_NOTE_TEMPLATE.format(conditions=", ".join(user_conditions)))

            return GeneratedResponse(
                response=generate_condition_response(condition, template_lang),
                suggestions=suggestions,
                emergency=condition.emergency,
                follow_up=FOLLOW_UP_TEMPLATE.format(name=condition.name),
                confidence=CONDITION_CONFIDENCE,
            )

        return GeneratedResponse(
            response=generate_general_response(intent, template_lang),
            suggestions=get_general_suggestions(intent),
            emergency=False,
            confidence=GENERAL_CONFIDENCE,
        )


def generate_condition_response(condition: MedicalCondition, language: str) -> str:
    template = CONDITION_TEMPLATES[template_language(language)]
    return template.format(
        name=condition.name,
        symptoms=", ".join(condition.symptoms),
        causes=", ".join(condition.causes),
        treatments=", ".join(condition.treatments),
        precautions=", ".join(condition.precautions),
    )


def generate_general_response(intent: str, language: str) -> str:
    responses = GENERAL_RESPONSES[template_language(language)]
    return responses.get(intent, responses["default"])


def get_general_suggestions(intent: str) -> list[str]:
    return list(GENERAL_SUGGESTIONS.get(intent, GENERAL_SUGGESTIONS["default"]))
