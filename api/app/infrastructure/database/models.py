"""
Modelos de base de datos (ORM).
"""
from sqlalchemy import Boolean, Column, Date, DateTime, Integer, BigInteger, Numeric, String, Text
from sqlalchemy.sql import func

from app.infrastructure.database.session import Base


class CabecalhoNotaModel(Base):
    """
    Espejo local de los cabeceras de nota (CabecalhoNota) de Sankhya.

    Clave: (id_sistema, nunota). Las filas nunca se borran fisicamente:
    sankhya_atual='N' indica que el registro ya no vino en el ultimo snapshot.
    """

    __tablename__ = "as_cabecalho_nota"

    id_sistema = Column(Integer, primary_key=True, autoincrement=False)
    nunota = Column(BigInteger, primary_key=True, autoincrement=False)
    codtipoper = Column(Integer, nullable=True)
    codtipvenda = Column(Integer, nullable=True)
    codparc = Column(Integer, nullable=True)
    codvend = Column(Integer, nullable=True)
    vlrnota = Column(Numeric(18, 2), nullable=True)
    dtneg = Column(Date, nullable=True)
    tipmov = Column(String(1), nullable=True)
    sankhya_atual = Column(String(1), nullable=False, default="S", index=True)
    dt_ult_carga = Column(DateTime(timezone=True), nullable=True)
    dt_criacao = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return (
            f"<CabecalhoNota(id_sistema={self.id_sistema}, nunota={self.nunota}, "
            f"sankhya_atual={self.sankhya_atual})>"
        )


class ContratoModel(Base):
    """
    Contratos Sankhya (un contrato = una empresa/tenant).

    ativo='S' habilita la empresa para el sync masivo; is_sandbox decide
    la URL base a usar.
    """

    __tablename__ = "ad_contratos"

    id_empresa = Column(Integer, primary_key=True, autoincrement=False)
    empresa = Column(String(255), nullable=False, index=True)
    ativo = Column(String(1), nullable=False, default="S")
    is_sandbox = Column(Boolean, nullable=False, default=False)
    client_id = Column(String(255), nullable=True)
    client_secret = Column(String(255), nullable=True)
    x_token = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Contrato(id_empresa={self.id_empresa}, empresa={self.empresa}, ativo={self.ativo})>"


class SyncLogModel(Base):
    """Log de auditoria de cada corrida de sincronizacion."""

    __tablename__ = "as_sync_logs"

    id = Column(Integer, primary_key=True, index=True)
    id_sistema = Column(Integer, nullable=False, index=True)
    empresa = Column(String(255), nullable=True)
    tabela = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False)
    total_registros = Column(Integer, nullable=False, default=0)
    registros_inseridos = Column(Integer, nullable=False, default=0)
    registros_atualizados = Column(Integer, nullable=False, default=0)
    registros_deletados = Column(Integer, nullable=False, default=0)
    duracao_ms = Column(Integer, nullable=False, default=0)
    mensagem_erro = Column(Text, nullable=True)
    data_inicio = Column(DateTime(timezone=True), nullable=True)
    data_fim = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<SyncLog(id={self.id}, id_sistema={self.id_sistema}, status={self.status})>"
