"""
academy_agents — Stateless Academy Agents with Defensive Output Parsing
=======================================================================
Turns free-form text from a generation backend into schema-validated
structured data, with bounded retry-with-correction, and runs agents
without holding any state between calls.

Module map
----------
  models.py                        AgentConfiguration, SessionState, AgentContext
                                   and the pydantic output contracts.
  config.py                        Settings loaded from .env; live vs. mock mode.
  errors.py                        ParseError family + UnexpectedFailure.
  guardrails.py                    Input sanitiser (script / SQL strip, length bound).
  json_parser.py                   Fence strip → extract → repair → json.loads.
  validation.py                    validate(value, schema) → ValidationOutcome.
  retry.py                         Retry-with-correction loop.
  generation.py                    GenerationClient protocol, OpenAI backend, mock.
  agent_trace.py                   AttemptRecord / ExecutionTrace audit log.
  agent.py                         AgentVariant strategy record + shared template.

  discovery_coach_agent.py         Feedback on discovery questions.
  quiz_generation_agent.py         Scenario-based quiz questions.
  lesson_personalization_agent.py  Ranked lesson recommendations + learning path.

Pipeline order
--------------
  sanitize_input → variant.build_prompt → GenerationClient.generate
  → extract / repair → validate
  ┌── ok ─────────────▶ typed output (+ new SessionState via run_agent)
  └── ParseError ─────▶ correction prompt → generate → … (max_retries)
                        → TerminalParseFailure
  backend failure ────▶ UnexpectedFailure (never retried)
"""
__version__ = "0.1.0"
