# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from mdtranslate.agents.agent import AgentConfig, Agent
from mdtranslate.agents.markdown_agent import MDTranslateAgentConfig, MDTranslateAgent

__all__ = ["AgentConfig", "Agent", "MDTranslateAgentConfig", "MDTranslateAgent"]
