"""
Hierarquia de exceções do pacote Paillier.

As exceções concretas herdam de ValueError além de PaillierError, de modo que
quem já trata ValueError continua funcionando. Mensagens nunca incluem
material de chave.
"""


class PaillierError(Exception):
    """Classe base para erros do criptossistema Paillier."""


class DomainError(PaillierError, ValueError):
    """Valor fora do domínio representável (texto claro ou codificação)."""


class KeyMismatchError(PaillierError, ValueError):
    """Operandos pertencem a chaves públicas diferentes."""


class ShapeMismatchError(PaillierError, ValueError):
    """Formatos incompatíveis em operações com EncryptedArray."""


class ConfigurationError(PaillierError, ValueError):
    """Parâmetros criptográficos inviáveis (ex.: tamanho de chave)."""
