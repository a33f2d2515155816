"""
Constantes centralizadas para o criptossistema Paillier.

Esta classe organiza os parâmetros de forma semântica para facilitar
manutenção e configuração do sistema.

Seguindo python-paillier / Paillier.jl:
- n = p * q (módulo público, produto de dois primos de tamanho n_length/2)
- g = n + 1 (simplificação padrão do Paillier)
- max_int = n // 3 - 1 (maior magnitude codificável)
- base = 16 (base da codificação em ponto fixo)
- Mantissa de float64 = 53 bits
"""

import math

from .errors import ConfigurationError


DEFAULT_KEY_LENGTH = 2048
DEFAULT_BASE = 16
MIN_KEY_LENGTH = 16
FLOAT_MANTISSA_BITS = 53


class PaillierCryptographicParameters:
    """
    Classe que centraliza os parâmetros criptográficos do esquema Paillier.

    Separa:
    - Parâmetros de segurança (tamanho do módulo)
    - Parâmetros de codificação (base, bits de mantissa)
    """

    def __init__(
        self,
        key_length: int = DEFAULT_KEY_LENGTH,  # bits do módulo n
        base: int = DEFAULT_BASE,  # base da codificação em ponto fixo
        min_key_length: int = MIN_KEY_LENGTH,  # menor módulo aceito
        float_mantissa_bits: int = FLOAT_MANTISSA_BITS,  # precisão de float64
    ):
        """
        Inicializa e valida os parâmetros.

        Args:
            key_length: Tamanho em bits do módulo n = p * q
            base: Base da codificação (escala = base^expoente)
            min_key_length: Menor tamanho de chave aceito na geração
            float_mantissa_bits: Bits de mantissa usados para floats Python

        Raises:
            ConfigurationError: Se algum parâmetro for inviável
        """
        if not isinstance(min_key_length, int) or min_key_length < MIN_KEY_LENGTH:
            raise ConfigurationError(
                f"Tamanho mínimo de chave deve ser pelo menos {MIN_KEY_LENGTH} bits"
            )
        self.MIN_KEY_LENGTH = min_key_length
        self.KEY_LENGTH = self.validate_key_length(key_length)

        if not isinstance(base, int) or base < 2:
            raise ConfigurationError(f"Base da codificação deve ser >= 2, recebido: {base}")
        self.ENCODING_BASE = base
        self.LOG2_BASE = math.log2(base)

        if float_mantissa_bits < 1:
            raise ConfigurationError("Número de bits de mantissa deve ser positivo")
        self.FLOAT_MANTISSA_BITS = float_mantissa_bits

    def validate_key_length(self, key_length) -> int:
        """
        Verifica se é possível gerar dois primos distintos para o tamanho pedido.

        Returns:
            int: O próprio tamanho, se válido

        Raises:
            ConfigurationError: Se o tamanho for pequeno demais ou não inteiro
        """
        if isinstance(key_length, bool) or not isinstance(key_length, int):
            raise ConfigurationError(
                f"Tamanho de chave deve ser inteiro, recebido: {type(key_length).__name__}"
            )
        if key_length < self.MIN_KEY_LENGTH:
            raise ConfigurationError(
                f"Tamanho de chave {key_length} é pequeno demais "
                f"(mínimo {self.MIN_KEY_LENGTH} bits)"
            )
        return key_length

    @classmethod
    def test_config(cls):
        """
        Configuração pequena, apenas para testes e exemplos.

        Returns:
            PaillierCryptographicParameters: Chave de 128 bits
        """
        return cls(key_length=128)

    @classmethod
    def standard_config(cls):
        """
        Configuração padrão (equivalente ao default de python-paillier/Paillier.jl).

        Returns:
            PaillierCryptographicParameters: Chave de 2048 bits
        """
        return cls(key_length=2048)

    @classmethod
    def high_security_config(cls):
        """
        Configuração de alta segurança.

        Returns:
            PaillierCryptographicParameters: Chave de 4096 bits
        """
        return cls(key_length=4096)

    def print_parameters_summary(self):
        """
        Imprime um resumo dos parâmetros configurados.
        """
        print("=== PARÂMETROS CRIPTOGRÁFICOS PAILLIER ===")
        print(f"Tamanho do módulo n: {self.KEY_LENGTH} bits")
        print(f"Tamanho de cada primo: ~{self.KEY_LENGTH // 2} bits")
        print(f"Tamanho mínimo aceito: {self.MIN_KEY_LENGTH} bits")
        print(f"Base da codificação: {self.ENCODING_BASE} (log2 = {self.LOG2_BASE})")
        print(f"Bits de mantissa (float): {self.FLOAT_MANTISSA_BITS}")
        print("=" * 42)


# Validação automática dos parâmetros (python -m paillier.constants)
if __name__ == "__main__":
    try:
        print("=== CONFIGURAÇÃO DE TESTE ===")
        PaillierCryptographicParameters.test_config().print_parameters_summary()
        print("\n=== CONFIGURAÇÃO PADRÃO ===")
        PaillierCryptographicParameters.standard_config().print_parameters_summary()
        print("\n✓ Todas as configurações são válidas!")
    except ConfigurationError as e:
        print(f"✗ Erro na validação dos parâmetros: {e}")
