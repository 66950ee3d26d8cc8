from __future__ import annotations


class Messages:
    """Operator-facing notification texts in Portuguese.

    Each entry is a (title, message) pair.
    """

    STARTED = ("Consulta Iniciada", "A transcrição em tempo real foi iniciada.")
    PAUSED = ("Consulta Pausada", "A transcrição foi pausada.")
    RESUMED = ("Consulta Retomada", "A transcrição foi retomada.")
    AUTO_PAUSED = (
        "Consulta Pausada Automaticamente",
        'A gravação foi pausada porque a aba perdeu o foco. Clique em "Continuar" para retomar.',
    )
    AUTO_RESUMED = (
        "Consulta Retomada Automaticamente",
        "A gravação foi retomada porque a aba voltou a ficar visível.",
    )
    SAVED = ("Consulta Salva", "A consulta foi salva com sucesso!")


class ErrorMessages:
    """Operator-facing error texts in Portuguese."""

    DEVICE_FAILED = (
        "Erro na Gravação",
        "Não foi possível iniciar a gravação. Verifique as permissões do microfone.",
    )
    RECOGNITION_FAILED = (
        "Erro na Transcrição",
        "Ocorreu um erro no reconhecimento de voz. Verifique se o microfone está funcionando.",
    )
    RESTART_FAILED = (
        "Erro na Transcrição",
        "O reconhecimento de voz parou. Pause e retome a consulta para tentar novamente.",
    )
    CREATE_FAILED = ("Erro ao Iniciar", "Não foi possível criar a consulta. Tente novamente.")
    STATUS_UPDATE_FAILED = (
        "Falha ao Sincronizar",
        "Não foi possível atualizar o status da consulta. A gravação continua normalmente.",
    )
    SAVE_FAILED = ("Erro ao Salvar", "Não foi possível salvar a consulta. Tente novamente.")
