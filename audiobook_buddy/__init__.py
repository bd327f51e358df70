"""Audiobook Buddy: PDF text-to-speech, summaries and quizzes."""
