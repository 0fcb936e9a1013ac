"""LLM prompts for Realpolitik AI decisions.

Prompts are organized by function:

1. Defense Allocation - one defender choosing how much force to commit
2. Batch Strategic Planning - one call analyzing many AI countries

All prompts use clear template variable naming with curly braces: {variable_name}
Literal JSON braces are doubled so ``str.format`` leaves them intact.
"""

# =============================================================================
# DEFENSE ALLOCATION PROMPTS
# =============================================================================

DEFENSE_SYSTEM_PROMPT = """You are the military commander of a nation in a turn-based geopolitical strategy game.
You answer with a single percentage and a one-sentence rationale. Never ask questions."""

DEFENSE_ALLOCATION_PROMPT = """You are the AI leader of {defender_name} defending against an attack from {attacker_name} on your city {city_name}.

YOUR CURRENT SITUATION:
- Military Strength: {military_strength} units ({effective_strength} effective)
- Population: {population:,}
- Budget: {budget}
- Technology Level: {technology_level}
- City Being Attacked: {city_name}
- City's Strategic Value: {city_value}/10 (resources + population importance)

STRATEGIC CONTEXT:
- Military-to-Population Ratio: {military_ratio:.2f} (higher = more militarized)
- Attacker's total effective strength: {attacker_effective}
- Attacker's military allocation is UNKNOWN

DEFENSE DECISION:
Decide what percentage of your military strength (30-90%) to commit to defending this city.
Defenders fight with a 20% terrain bonus. Forces you commit risk losses; forces you hold back protect the rest of your territory.

Respond with ONLY a percentage number followed by a brief rationale.

Example: "65% - This city anchors our oil production and we can spare the forces."
"""


# =============================================================================
# BATCH STRATEGIC PLANNING PROMPTS
# =============================================================================

STRATEGY_SYSTEM_PROMPT = """You are a strategic advisor for several AI-controlled nations in a turn-based geopolitical strategy game.
Output valid JSON only. No markdown, no commentary."""

GAME_RULES_SUMMARY = """EXECUTABLE ACTIONS (only these can be done):
1. TECHNOLOGY UPGRADE: Boosts production (1.25x -> 3.0x) and military effectiveness (+20%/level).
2. INFRASTRUCTURE UPGRADE: Boosts tax (+15%/level) and population capacity (200k + 50k x level).
3. RECRUIT MILITARY: Add strength. Cost: 30/point, cheaper with technology.
4. ATTACK CITY: Conquer enemy cities (risky; defenders get a 20% terrain bonus).

Missing materials never block an action but raise its budget cost (+40% per missing resource, max 2.5x).
"""

BATCH_COUNTRY_BLOCK = """
### {name} (ID: {country_id})
Pop: {population_k}k | ${budget} | Tech L{technology_level} | Infra L{infrastructure_level} | Mil {military_strength} | {profile}
Income: ${net_income}/t | {defense_status} | {solvency}
Neighbors: {neighbors}"""

BATCH_STRATEGY_PROMPT = """{rules}
Plan {horizon} turns (2-3 actions/turn). Use "when" to pace.

COUNTRIES TO ANALYZE:
{country_blocks}

Return JSON OBJECT with "countries" array containing one analysis per country:
{{
  "countries": [
    {{
      "countryId": "{example_id}",
      "focus": "economy"|"military"|"research"|"diplomacy"|"balanced",
      "rationale": "Why (max 100 chars)",
      "threats": "Key threats",
      "opportunities": "Key opportunities",
      "action_plan": [
        {{"id":"tech_l2","instruction":"Tech to L2","priority":1,"execution":{{"actionType":"research","actionData":{{"targetLevel":2}}}}}},
        {{"id":"infra_l2","instruction":"Infra to L2","priority":2,"when":{{"budget_gte":1000}},"execution":{{"actionType":"economic","actionData":{{"subType":"infrastructure","targetLevel":2}}}}}},
        {{"id":"recruit_45","instruction":"Recruit to 45","priority":3,"when":{{"tech_level_gte":2}},"stop_when":{{"military_strength_gte":45}},"execution":{{"actionType":"military","actionData":{{"subType":"recruit","amount":10}}}}}}
      ],
      "constraints": [
        {{"id":"no_attacks","instruction":"Avoid attacks while rebuilding","effects":{{"prohibit":["attack"]}}}}
      ],
      "diplomacy": {{"neighbor_id": "neutral"}},
      "confidence": 0.9
    }}
  ]
}}

RULES: 6-8 steps, ALL executable (tech/infra/recruit/attack), use "when" for pacing, NO passive steps."""
