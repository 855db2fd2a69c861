"""Prompt builders for chart classification, analysis, and follow-up questions."""

from typing import Dict, Iterable, Tuple

from models.timeframe import Timeframe

ANALYST_SYSTEM_PROMPT = (
    "You are an expert trading analyst who reads candlestick charts carefully. "
    "Only describe what is visible on the chart and be specific about price levels when they are readable."
)

TIMEFRAME_PROMPT = """
Analyze this trading chart image and identify the timeframe. Look for timeframe indicators in the chart interface.

Respond with ONLY one of these exact timeframes:
- 4h (for 4 hour charts)
- 1h (for 1 hour charts)
- 15m (for 15 minute charts)
- 5m (for 5 minute charts)

If you cannot clearly identify the timeframe, respond with "unknown".
"""

ANALYSIS_PROMPTS: Dict[Timeframe, str] = {
    Timeframe.H4: """
Analyze this 4-hour chart and provide detailed technical analysis.

Focus on:
1. **Trend Analysis**: Current trend direction and strength
2. **Support/Resistance**: Key levels and price action around them
3. **Technical Indicators**: RSI, moving averages, volume, any visible indicators
4. **Chart Patterns**: Any recognizable patterns (triangles, flags, head & shoulders, etc.)
5. **Market Structure**: Higher highs/lows, market phases
6. **Risk Assessment**: Potential risks and invalidation levels

Provide your analysis in a structured format with clear sections. Be specific about price levels when visible.
""",
    Timeframe.H1: """
Analyze this 1-hour chart and provide detailed technical analysis.

Focus on:
1. **Short-term Trend**: Current momentum and direction
2. **Entry/Exit Zones**: Potential trade entry and exit points
3. **Support/Resistance**: Immediate key levels
4. **Technical Indicators**: RSI, moving averages, volume patterns
5. **Price Action**: Recent candlestick patterns and market behavior
6. **Confluence**: Areas where multiple factors align

Provide actionable insights for short-term trading decisions. Be specific about timing and levels.
""",
    Timeframe.M15: """
Analyze this 15-minute chart for precise entry timing.

Focus on:
1. **Micro Trends**: Very short-term price movements
2. **Entry Timing**: Precise entry signals and confirmations
3. **Scalping Opportunities**: Quick profit-taking levels
4. **Volume Analysis**: Volume spikes and patterns
5. **Price Action**: Recent candle formations and momentum
6. **Risk Management**: Stop-loss placement for short-term trades

Provide specific timing guidance for intraday trading strategies.
""",
    Timeframe.M5: """
Analyze this 5-minute chart for scalping and precise timing.

Focus on:
1. **Immediate Price Action**: Current momentum and micro-movements
2. **Scalping Setups**: Quick entry/exit opportunities
3. **Volume Confirmation**: Volume supporting price moves
4. **Support/Resistance**: Immediate levels for quick trades
5. **Market Noise**: Filtering out false signals
6. **Execution Timing**: Optimal entry and exit timing

Provide ultra-short-term trading insights with specific timing recommendations.
""",
}

FINAL_INSTRUCTIONS = """
## Instructions:
Provide a structured final recommendation with these sections:

### Trading Summary
- **Overall Market Bias**: Bullish/Bearish/Neutral with confidence level
- **Recommended Action**: BUY/SELL/WAIT with clear reasoning
- **Trade Type**: Swing/Intraday/Scalp based on the setup quality
- **Confidence Level**: High/Medium/Low

### Reasoning
- **Multi-timeframe Confluence**: How different timeframes align
- **Key Technical Factors**: Most important signals supporting the decision
- **Risk Factors**: What could invalidate this analysis
- **Market Context**: Current market conditions and their impact

### Position Details
- **Entry Zone**: Specific price levels for entry
- **Stop Loss**: Exact stop-loss levels with reasoning
- **Take Profit**: Multiple TP levels with percentages
- **Position Size**: Recommended risk percentage
- **Time Horizon**: Expected trade duration
- **Alternative Scenarios**: What to do if price moves differently

### Waiting Points
- If the recommendation is WAIT, specify:
  - What levels to watch for entry
  - What confirmations to wait for
  - Alternative shorter-term opportunities
  - When to reassess the situation

Be specific with price levels, percentages, and actionable guidance. Focus on practical trading decisions.
"""

CONTEXT_SYSTEM_PROMPT = (
    "You are an expert trading analyst answering follow-up questions about a chart analysis you wrote. "
    "Answer the question about the highlighted passage, use the surrounding analysis for context, "
    "and keep the answer concise and practical."
)


def analysis_section(timeframe: Timeframe, text: str) -> str:
    return f"## {timeframe.heading} Analysis:\n{text}"


def build_final_prompt(sections: Iterable[Tuple[Timeframe, str]]) -> str:
    """Return the aggregation prompt embedding one labeled section per analysis."""
    analyses = "\n\n".join(analysis_section(tf, text) for tf, text in sections)
    return (
        "Based on the multi-timeframe analysis provided below, create a comprehensive trading recommendation.\n\n"
        f"{analyses}\n{FINAL_INSTRUCTIONS}"
    )


def build_context_prompt(question: str, selected_text: str, full_context: str) -> str:
    """Return the user prompt for a question scoped to a selected passage."""
    context_block = f"Full analysis:\n{full_context}" if full_context else "No surrounding analysis provided."
    selection_block = f'Selected passage:\n"{selected_text}"' if selected_text else "No passage selected."
    return f"{context_block}\n\n{selection_block}\n\nQuestion: {question}"
