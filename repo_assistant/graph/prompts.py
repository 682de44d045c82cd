"""
prompts.py
----------
Centralized prompt text for the agent's LLM roles, versioned via constants.
"""
from __future__ import annotations

QUERY_REWRITE_INSTRUCTION = (
    "What are the most relevant details for addressing the current request and "
    "conversation state? Provide a comprehensive and focused query for a semantic "
    "search. Your output will fill in the details missing from the latest message, "
    "so it must stand on its own without the conversation."
)

SEARCH_ANALYSIS = """User Query: "{query}"

File Descriptions:
```
{descriptions}
```

Related code from vector search:
```
{code}
```

Based on the user query and the provided code: were the vector results accurate, and
what other files or components are needed to fully answer this request? Do not respond
with code snippets. Respond with a single JSON block:

```json
{{
  "suggested_files": ["path/to/file", "..."],
  "bm25_keywords": "space separated keywords for a keyword search over file summaries"
}}
```
Only list files whose full source is clearly needed in "suggested_files".
"""

SYSTEM_ARCHITECT = """You are an AI architect assistant. Your goal is to decide the best next step
to answer a user's request, given the available context. You have access to high-level
summaries of project files and the full source of a few active code files.
"""

ARCHITECT_INSTRUCTIONS = """--- Your Decision ---
Based on the above, decide your next action. You MUST respond with a single JSON object
and no conversational text:
{
  "action": "GENERATE" | "FETCH_SOURCE" | "SEARCH_MORE",
  "reason": "A brief explanation for your decision.",
  "paths": ["path/to/file1", "path/to/file2"],
  "keywords": "space separated keywords for a new search"
}

Available actions:
- GENERATE: the context is sufficient to answer the user's latest message.
- FETCH_SOURCE: you need the full source of files whose summaries are listed. Put their
  paths in "paths". Only select files whose summaries are available.
- SEARCH_MORE: you need to broaden or refine the summary search. Put new keywords in
  "keywords".
"""

SYSTEM_ASSISTANT = (
    "You are an AI assistant helping with code analysis for a project. "
    'The user\'s original query was: "{query}"'
)

LIVE_FILES_NOTE = (
    "The files provided in this context are live and reflect the user's current code "
    "state, which often includes their attempts to apply earlier suggestions. Always "
    "refer to these files for the latest version."
)
