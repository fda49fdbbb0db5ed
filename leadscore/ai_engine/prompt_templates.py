"""
leadscore/ai_engine/prompt_templates.py — LangChain prompt templates for the intent classifier.

Two prompts:
  1. INTENT_ANALYSIS  - prospect profile + offer → "Intent: ... / Reasoning: ..." text
  2. CONNECTIVITY     - minimal "respond OK" probe used by health checks
"""

from langchain_core.prompts import ChatPromptTemplate


# ── 1. Intent Analysis ────────────────────────────────────────────────────────

INTENT_ANALYSIS_PROMPT = ChatPromptTemplate.from_messages([
    (
        "system",
        (
            "You are an expert B2B lead qualification analyst. "
            "You read a prospect profile and a product offer and judge how likely "
            "the prospect is to buy. Be concise and realistic."
        ),
    ),
    (
        "human",
        """Analyze this lead for buying intent based on the product offer:

LEAD INFORMATION:
- Name: {name}
- Role: {role}
- Company: {company}
- Industry: {industry}
- Location: {location}
- Professional Summary: {professional_summary}

PRODUCT OFFER:
- Product: {offer_name}
- Value Propositions: {value_propositions}
- Ideal Use Cases: {ideal_use_cases}

TASK:
Classify the lead's buying intent as High, Medium, or Low based on:
1. Role relevance (decision-making authority)
2. Industry fit with the product
3. Company profile alignment with ideal use cases
4. Professional background indicating need/interest

RESPONSE FORMAT:
Intent: [High/Medium/Low]
Reasoning: [1-2 sentences explaining the classification]

CLASSIFICATION GUIDELINES:
- High: Strong decision-making role + excellent industry/company fit + clear need indicators
- Medium: Some decision influence OR good fit but missing key elements
- Low: Limited decision authority + poor fit OR insufficient information

Please provide your analysis:""",
    ),
])


# ── 2. Connectivity Probe ─────────────────────────────────────────────────────

CONNECTIVITY_PROMPT = ChatPromptTemplate.from_messages([
    ("human", 'Respond with "OK" to confirm connectivity.'),
])
